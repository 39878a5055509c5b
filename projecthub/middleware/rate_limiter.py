"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance is
created in projecthub/__init__.py with no default limits; this module applies
granular limits per route category.

Usage:
    from projecthub.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

AUTH_LIMIT = "20/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:      20/minute  (credential guessing)
        - Invitation / join:   60/minute  (mutations that send mail / notify)
        - Everything else:     200/minute
        - Health check:        exempt

    Rate limiting is disabled in testing mode or when RATELIMIT_ENABLED is off.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("auth_bp")
    if bp:
        limiter.limit(AUTH_LIMIT)(bp)

    for bp_name in ("invitation_bp", "join_request_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("project_bp", "task_bp", "notification_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — auth: %s, invitations/join: %s, other: %s",
        AUTH_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
