"""
Log record context.

Tests cover:
  - request and principal fields stamped onto records during a request
  - explicit ``extra`` values win over request context
  - JSON and readable output carry the context
"""

import json
import logging

from flask import g

from projecthub.middleware.logging_config import (
    JSONFormatter,
    ReadableFormatter,
    RequestContextFilter,
)
from projecthub.services.identity import Principal


def _record(msg="hello", **extra):
    record = logging.LogRecord("projecthub.test", logging.WARNING, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContextFilter:
    def test_outside_request_leaves_record_alone(self):
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert getattr(record, "path", None) is None

    def test_stamps_request_and_principal(self, app):
        with app.test_request_context("/api/v1/projects/3", method="DELETE"):
            g.principal = Principal(user_id=7, tenant_id=2, email="eve@acme.io")
            record = _record()
            RequestContextFilter().filter(record)
        assert (record.method, record.path) == ("DELETE", "/api/v1/projects/3")
        assert (record.tenant_id, record.user_id) == (2, 7)

    def test_anonymous_request_has_no_ids(self, app):
        with app.test_request_context("/api/v1/auth/signin", method="POST"):
            record = _record()
            RequestContextFilter().filter(record)
        assert record.path == "/api/v1/auth/signin"
        assert getattr(record, "user_id", None) is None

    def test_explicit_extra_wins(self, app):
        with app.test_request_context("/api/v1/projects/3"):
            g.principal = Principal(user_id=7, tenant_id=2, email="eve@acme.io")
            record = _record(tenant_id=99)
            RequestContextFilter().filter(record)
        assert record.tenant_id == 99
        assert record.user_id == 7


class TestFormatters:
    def test_json_includes_context(self):
        out = json.loads(JSONFormatter().format(
            _record("blocked", tenant_id=2, user_id=7, event_type="tenant_mismatch", resource="Project"),
        ))
        assert out["message"] == "blocked"
        assert out["level"] == "WARNING"
        assert out["user_id"] == 7
        assert out["resource"] == "Project"
        assert "path" not in out

    def test_readable_appends_ids_and_event(self):
        line = ReadableFormatter().format(_record("blocked", tenant_id=2, user_id=7, event_type="tenant_mismatch"))
        assert line.endswith("projecthub.test: blocked [tenant=2 user=7] [tenant_mismatch]")
        assert "\033[" not in line
