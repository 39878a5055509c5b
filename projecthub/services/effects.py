"""
Post-commit side effects.

Mutating services collect notifications and emails in an ``EffectQueue`` while
the transaction is open and call ``dispatch()`` only after ``commit()``.
A failing effect is logged and skipped; it never undoes the committed
state change and never reaches the caller.
"""

import logging

from projecthub.models import db

logger = logging.getLogger(__name__)


class EffectQueue:
    def __init__(self):
        self._effects = []

    def enqueue(self, name, fn, *args, **kwargs):
        self._effects.append((name, fn, args, kwargs))

    def __len__(self):
        return len(self._effects)

    def dispatch(self) -> int:
        """Run queued effects in order. Returns how many succeeded."""
        ok = 0
        effects, self._effects = self._effects, []
        for name, fn, args, kwargs in effects:
            try:
                fn(*args, **kwargs)
                ok += 1
            except Exception:
                db.session.rollback()
                logger.exception("Post-commit effect '%s' failed", name)
        return ok
