"""
Shared pytest fixtures for the ProjectHub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_tenant / make_user / make_project: entity factories
    - principal_of / auth_headers: identity helpers
"""

import pytest

from projecthub import create_app
from projecthub.models import db as _db
from projecthub.models.auth import Tenant, User
from projecthub.services import project_service
from projecthub.services.identity import principal_for
from projecthub.services.jwt_service import generate_access_token
from projecthub.services.security_observability import reset_security_events


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        reset_security_events()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_tenant():
    def _make(name="Acme", slug=None, status="active"):
        t = Tenant(name=name, slug=slug or name.lower().replace(" ", "-"), status=status)
        _db.session.add(t)
        _db.session.commit()
        return t
    return _make


@pytest.fixture()
def make_user():
    def _make(tenant, email, full_name=None, password_hash=None):
        u = User(
            tenant_id=tenant.id,
            email=email.lower(),
            full_name=full_name or email.split("@")[0].title(),
            password_hash=password_hash,
        )
        _db.session.add(u)
        _db.session.commit()
        return u
    return _make


@pytest.fixture()
def make_project():
    def _make(owner, name="Apollo", **fields):
        return project_service.create_project(principal_for(owner), {"name": name, **fields})
    return _make


@pytest.fixture()
def principal_of():
    return principal_for


@pytest.fixture()
def auth_headers():
    def _headers(user):
        token = generate_access_token(user.id, user.tenant_id)
        return {"Authorization": f"Bearer {token}"}
    return _headers


# ── Common scenario ──────────────────────────────────────────────────────


@pytest.fixture()
def acme(make_tenant):
    return make_tenant("Acme", "acme")


@pytest.fixture()
def globex(make_tenant):
    return make_tenant("Globex", "globex")


@pytest.fixture()
def owner(acme, make_user):
    return make_user(acme, "owner@acme.io", "Olivia Owner")


@pytest.fixture()
def project(owner, make_project):
    return make_project(owner, "Apollo")
