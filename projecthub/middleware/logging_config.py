"""
Structured logging configuration.

Every record emitted while a request is in flight is stamped with the
request line and, once the bearer token has been resolved, the caller's
tenant and user ids. Output format depends on the environment:

- Development / testing: one readable line, context appended in brackets
- Production: one JSON object per line
- Log level: LOG_LEVEL env variable
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context, request

# Record attributes emitted by the formatters when set, in output order
CONTEXT_FIELDS = (
    "method",
    "path",
    "remote_addr",
    "tenant_id",
    "user_id",
    "project_id",
    "resource",
    "resource_id",
    "event_type",
    "severity",
)


def _request_context() -> dict:
    fields = {
        "method": request.method,
        "path": request.path,
        "remote_addr": request.remote_addr,
    }
    principal = g.get("principal")
    if principal is not None:
        fields["tenant_id"] = principal.tenant_id
        fields["user_id"] = principal.user_id
    return fields


class RequestContextFilter(logging.Filter):
    """Fill request and principal fields the caller did not pass via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            for key, value in _request_context().items():
                if getattr(record, key, None) is None:
                    setattr(record, key, value)
        return True


def _context_of(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_of(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``12:00:01 WARNING  logger: message [tenant=1 user=7] [tenant_mismatch]``"""

    LEVEL_COLORS = {
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = False):
        super().__init__("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ids = [
            f"{label}={getattr(record, key)}"
            for label, key in (("tenant", "tenant_id"), ("user", "user_id"))
            if getattr(record, key, None) is not None
        ]
        if ids:
            line += f" [{' '.join(ids)}]"
        event = getattr(record, "event_type", None)
        if event:
            line += f" [{event}]"
        color = self.LEVEL_COLORS.get(record.levelname) if self.use_color else None
        return f"{color}{line}{self.RESET}" if color else line


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    LOG_LEVEL defaults to INFO in production and DEBUG elsewhere.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter(use_color=sys.stderr.isatty()))
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    # Cleared first so repeated app creation in tests does not stack handlers
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("urllib3", "werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
