"""Normalize the timestamp shapes stored on subscription and doctor records.

Records can carry a native ``datetime``, an ISO-8601 string, epoch seconds or
milliseconds, a Firestore-style ``{"seconds": ..., "nanoseconds": ...}``
mapping, or a driver wrapper exposing ``to_datetime()`` / ``ToDatetime()``.
Everything is converted to a timezone-aware UTC ``datetime`` before any
comparison.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# Values above this are treated as epoch milliseconds (year 5138 in seconds).
_EPOCH_MS_THRESHOLD = 10**11


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(value: float) -> Optional[datetime]:
    if not math.isfinite(value):
        return None
    if abs(value) >= _EPOCH_MS_THRESHOLD:
        value = value / 1000.0
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_mapping(value: Mapping[str, Any]) -> Optional[datetime]:
    seconds = value.get("seconds", value.get("_seconds"))
    if seconds is None:
        return None
    nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
    try:
        return _from_epoch(float(seconds) + float(nanos) / 1e9)
    except (TypeError, ValueError):
        return None


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, or None if it cannot be read.

    Naive datetimes are assumed to already be UTC (that is how the database
    stores them).
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _aware(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        return _from_epoch(float(value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _aware(dateutil_parser.isoparse(text))
        except (ValueError, OverflowError):
            pass
        try:
            return _aware(dateutil_parser.parse(text))
        except (ValueError, OverflowError):
            logger.debug("Unparseable timestamp string: %r", text)
            return None

    if isinstance(value, Mapping):
        return _from_mapping(value)

    for method_name in ("to_datetime", "ToDatetime", "toDate"):
        converter = getattr(value, method_name, None)
        if callable(converter):
            converted = converter()
            if isinstance(converted, datetime):
                return _aware(converted)
            return None

    logger.debug("Unsupported timestamp type: %s", type(value).__name__)
    return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
