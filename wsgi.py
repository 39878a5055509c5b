"""
WSGI / Flask CLI entry point.

Usage:
    gunicorn wsgi:app
    FLASK_APP=wsgi.py flask db upgrade
    FLASK_APP=wsgi.py flask expire-invitations
"""

from projecthub import create_app

app = create_app()
