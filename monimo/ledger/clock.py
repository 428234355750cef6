"""
Id and time capabilities.

The engine never calls uuid or datetime directly; it receives these
callables so tests can pin ids and timestamps.
"""

from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
