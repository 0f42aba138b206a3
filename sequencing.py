"""
Stale-request guard.

Every edit form carries the token issued when it was rendered; only the most
recently issued token for an operation is accepted, so a form left open in an
old tab cannot overwrite a newer edit.
"""
import logging

logger = logging.getLogger(__name__)

SESSION_KEY = "_seq"


class RequestSequencer:
    """Monotonic per-operation counters kept in a mutable mapping (the Flask session)."""

    def __init__(self, mapping):
        self.mapping = mapping

    def _counters(self):
        return dict(self.mapping.get(SESSION_KEY) or {})

    def issue(self, op):
        counters = self._counters()
        counters[op] = counters.get(op, 0) + 1
        # reassign so a Flask session notices the change
        self.mapping[SESSION_KEY] = counters
        return counters[op]

    def latest(self, op):
        return self._counters().get(op, 0)

    def is_current(self, op, token):
        try:
            token = int(token)
        except (TypeError, ValueError):
            return False
        ok = token == self.latest(op)
        if not ok:
            logger.info("discarding stale %s submission (token %s, latest %s)",
                        op, token, self.latest(op))
        return ok


def form_op(kind, key):
    """Operation name for one record's edit form, e.g. 'shift:12'."""
    return f"{kind}:{key}"
