"""Small helpers shared by the models and services."""

import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """
    Identifier for groups/expenses when the client did not supply one.
    Nanosecond wall clock, same shape the web client already generates.
    """
    return str(time.time_ns())
