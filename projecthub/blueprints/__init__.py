"""
ProjectHub
Blueprint helpers shared by every route module.
"""

from flask import request

from projecthub.core.exceptions import ValidationError


def json_body() -> dict:
    """Parsed JSON object body; ``{}`` when the request carries none."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
