"""Timezone-aware clock utilities.

All run timestamps in scenario-reason MUST be UTC-aware.  This module is the
single source of "now" so tests can monkey-patch it trivially.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def monotonic_seconds() -> float:
    """Monotonic clock for measuring evaluation wall time."""
    return time.monotonic()
