"""Bookable slot computation for a doctor on a given date.

Candidate slots come from the doctor's per-weekday working hours, or from the
free-text schedule line shown on the profile ("Lunes a Viernes, 9:00 AM -
5:00 PM") when no working hours are configured. Already booked slots are
fetched from the appointment store and removed.
"""

import logging
import re
import unicodedata
from datetime import date
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Tuple

from app.core.config import settings

logger = logging.getLogger(__name__)

# Sun=0 .. Sat=6
WEEKDAY_KEYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

SPANISH_DAYS = {
    "domingo": 0,
    "lunes": 1,
    "martes": 2,
    "miercoles": 3,
    "jueves": 4,
    "viernes": 5,
    "sabado": 6,
}

_HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_TIME_RANGE_RE = re.compile(
    r"(\d{1,2}):(\d{2})\s*([AaPp]\.?\s*[Mm]\.?)?\s*[-–]\s*(\d{1,2}):(\d{2})\s*([AaPp]\.?\s*[Mm]\.?)?"
)

BookedSlotsFetcher = Callable[[Any, date], Awaitable[Iterable[str]]]


# ============================================================================
# TIME HELPERS
# ============================================================================

def time_to_minutes(t: str) -> int:
    """Convert HH:MM string to minutes since midnight."""
    match = _HHMM_RE.match(t or "")
    if not match:
        raise ValueError(f"Invalid time: {t!r}")
    h, m = int(match.group(1)), int(match.group(2))
    if m > 59 or h > 24 or (h == 24 and m):
        raise ValueError(f"Invalid time: {t!r}")
    return h * 60 + m


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM string."""
    h = minutes // 60
    m = minutes % 60
    return f"{h:02d}:{m:02d}"


def weekday_index(target_date: date) -> int:
    return (target_date.weekday() + 1) % 7


def weekday_key(target_date: date) -> str:
    return WEEKDAY_KEYS[weekday_index(target_date)]


def _to_24h(hour: int, minute: int, meridiem: Optional[str]) -> int:
    if meridiem:
        marker = meridiem.replace(".", "").replace(" ", "").upper()
        if hour < 1 or hour > 12:
            raise ValueError(f"Invalid 12-hour time: {hour}:{minute:02d} {meridiem}")
        if marker == "PM" and hour != 12:
            hour += 12
        elif marker == "AM" and hour == 12:
            hour = 0
    if minute > 59 or hour > 24 or (hour == 24 and minute):
        raise ValueError(f"Invalid time: {hour}:{minute:02d}")
    return hour * 60 + minute


def _strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def _parse_day_range(days_text: str) -> Optional[Tuple[int, int]]:
    parts = [p.strip() for p in _strip_accents(days_text).lower().split(" a ")]
    if len(parts) == 1:
        day = SPANISH_DAYS.get(parts[0])
        return (day, day) if day is not None else None
    if len(parts) == 2:
        start, end = SPANISH_DAYS.get(parts[0]), SPANISH_DAYS.get(parts[1])
        if start is None or end is None:
            return None
        return start, end
    return None


def parse_schedule_text(schedule_text: str) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """Parse "Lunes a Viernes, 9:00 AM - 5:00 PM" into day and minute ranges.

    Returns ``((first_day, last_day), (start_minutes, end_minutes))`` or None
    when the text does not follow that pattern.
    """
    if not schedule_text or "," not in schedule_text:
        return None
    days_text, hours_text = schedule_text.split(",", 1)

    day_range = _parse_day_range(days_text)
    if day_range is None:
        return None

    match = _TIME_RANGE_RE.search(hours_text)
    if not match:
        return None
    try:
        start = _to_24h(int(match.group(1)), int(match.group(2)), match.group(3))
        end = _to_24h(int(match.group(4)), int(match.group(5)), match.group(6))
    except ValueError:
        return None
    return day_range, (start, end)


def _day_in_range(day: int, day_range: Tuple[int, int]) -> bool:
    first, last = day_range
    if first <= last:
        return first <= day <= last
    # "Sábado a Lunes" wraps past Sunday
    return day >= first or day <= last


# ============================================================================
# CANDIDATE SLOTS
# ============================================================================

def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def resolve_day_window(
    working_hours: Optional[Mapping[str, Any]],
    schedule_text: Optional[str],
    target_date: date,
) -> Optional[Tuple[int, int]]:
    """Working window for ``target_date`` in minutes, or None if closed.

    Structured working hours win over the free-text schedule whenever they
    are configured at all; a weekday missing from them is a day off.
    """
    if working_hours:
        day = working_hours.get(weekday_key(target_date))
        if not day or not _field(day, "enabled"):
            return None
        try:
            return time_to_minutes(_field(day, "start")), time_to_minutes(_field(day, "end"))
        except (TypeError, ValueError):
            logger.warning("Invalid working hours for %s: %r", weekday_key(target_date), day)
            return None

    parsed = parse_schedule_text(schedule_text or "")
    if parsed is None:
        if schedule_text:
            logger.info("Schedule text not understood, no slots offered: %r", schedule_text)
        return None
    day_range, window = parsed
    if not _day_in_range(weekday_index(target_date), day_range):
        return None
    return window


def generate_candidate_slots(start_minutes: int, end_minutes: int, interval: int = 15) -> List[str]:
    """Every ``interval`` minutes from start while strictly before end."""
    if interval <= 0:
        raise ValueError("interval must be positive")
    slots = []
    m = start_minutes
    while m < end_minutes:
        slots.append(minutes_to_time(m))
        m += interval
    return slots


def candidate_slots_for_date(doctor: Any, target_date: date, interval: Optional[int] = None) -> List[str]:
    window = resolve_day_window(
        _field(doctor, "working_hours"),
        _field(doctor, "schedule_text"),
        target_date,
    )
    if window is None:
        return []
    start, end = window
    return generate_candidate_slots(start, end, interval or settings.SLOT_INTERVAL_MINUTES)


# ============================================================================
# AVAILABLE SLOTS
# ============================================================================

async def get_available_slots(
    doctor: Any,
    target_date: date,
    fetch_booked_slots: BookedSlotsFetcher,
    fail_open: Optional[bool] = None,
    interval: Optional[int] = None,
) -> List[str]:
    """Candidate slots for the date minus the ones already booked.

    If the booked-slot lookup fails, the full candidate list is returned when
    failing open (the default, ``SLOTS_FAIL_OPEN``) and nothing otherwise.
    """
    candidates = candidate_slots_for_date(doctor, target_date, interval)
    if not candidates:
        return []

    if fail_open is None:
        fail_open = settings.SLOTS_FAIL_OPEN

    doctor_id = _field(doctor, "id")
    try:
        booked = set(await fetch_booked_slots(doctor_id, target_date))
    except Exception as e:
        if fail_open:
            logger.warning(
                "Booked slot lookup failed for doctor %s on %s, offering all %d candidates: %s",
                doctor_id, target_date, len(candidates), e,
            )
            return candidates
        logger.error("Booked slot lookup failed for doctor %s on %s: %s", doctor_id, target_date, e)
        return []

    return [slot for slot in candidates if slot not in booked]
