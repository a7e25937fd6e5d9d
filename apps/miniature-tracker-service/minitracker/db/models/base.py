"""
Shared SQLAlchemy base and helpers.
"""
import threading
from datetime import datetime, timedelta, UTC
from typing import Optional

from sqlalchemy.orm import declarative_base

_clock_lock = threading.Lock()
_last_stamp: Optional[datetime] = None


def now_utc() -> datetime:
    """Return an aware UTC datetime, strictly increasing within the process.

    Two calls never return the same instant, even when the wall clock stalls
    or steps backwards, so consecutive mutations always order correctly.
    """
    global _last_stamp
    with _clock_lock:
        stamp = datetime.now(UTC)
        if _last_stamp is not None and stamp <= _last_stamp:
            stamp = _last_stamp + timedelta(microseconds=1)
        _last_stamp = stamp
        return stamp


Base = declarative_base()
