"""Tests for bookable slot generation."""

from datetime import date

import pytest

from app.services.scheduling import (
    candidate_slots_for_date,
    generate_candidate_slots,
    get_available_slots,
    parse_schedule_text,
    resolve_day_window,
    time_to_minutes,
    weekday_key,
)

MONDAY = date(2026, 3, 9)
SATURDAY = date(2026, 3, 14)
SUNDAY = date(2026, 3, 15)


def test_weekday_key_starts_on_sunday():
    assert weekday_key(SUNDAY) == "sunday"
    assert weekday_key(MONDAY) == "monday"
    assert weekday_key(SATURDAY) == "saturday"


def test_nine_to_five_gives_32_slots():
    slots = generate_candidate_slots(time_to_minutes("09:00"), time_to_minutes("17:00"))
    assert len(slots) == 32
    assert slots[0] == "09:00"
    assert slots[1] == "09:15"
    assert slots[-1] == "16:45"
    assert "17:00" not in slots


def test_partial_last_interval_is_dropped():
    slots = generate_candidate_slots(time_to_minutes("09:00"), time_to_minutes("09:40"))
    assert slots == ["09:00", "09:15", "09:30"]


def test_invalid_interval_rejected():
    with pytest.raises(ValueError):
        generate_candidate_slots(540, 600, interval=0)


@pytest.mark.parametrize("value", ["9", "25:00", "12:60", "ab:cd", ""])
def test_time_to_minutes_rejects_garbage(value):
    with pytest.raises(ValueError):
        time_to_minutes(value)


def test_disabled_day_has_no_slots():
    doctor = {"working_hours": {"monday": {"start": "09:00", "end": "17:00", "enabled": False}}}
    assert candidate_slots_for_date(doctor, MONDAY) == []


def test_day_missing_from_working_hours_has_no_slots():
    doctor = {"working_hours": {"monday": {"start": "09:00", "end": "13:00", "enabled": True}}}
    assert candidate_slots_for_date(doctor, SATURDAY) == []


def test_invalid_working_hours_yield_nothing():
    doctor = {"working_hours": {"monday": {"start": "nine", "end": "13:00", "enabled": True}}}
    assert candidate_slots_for_date(doctor, MONDAY) == []


def test_working_hours_win_over_schedule_text():
    window = resolve_day_window(
        {"monday": {"start": "10:00", "end": "11:00", "enabled": True}},
        "Lunes a Viernes, 9:00 AM - 5:00 PM",
        MONDAY,
    )
    assert window == (600, 660)


@pytest.mark.parametrize("text,expected", [
    ("Lunes a Viernes, 9:00 AM - 5:00 PM", ((1, 5), (540, 1020))),
    ("lunes a viernes, 08:30 - 12:30", ((1, 5), (510, 750))),
    ("Sábado, 9:00 a.m. - 1:00 p.m.", ((6, 6), (540, 780))),
    ("Miércoles a Jueves, 12:00 PM - 4:00 PM", ((3, 4), (720, 960))),
])
def test_parse_schedule_text(text, expected):
    assert parse_schedule_text(text) == expected


@pytest.mark.parametrize("text", [
    "Monday to Friday, 9am-5pm",
    "Lunes a Viernes 9:00 - 17:00",
    "Lunes a Viernes, mañanas",
    "Lunes a Viernes, 13:00 PM - 5:00 PM",
    "",
])
def test_unrecognized_schedule_text(text):
    assert parse_schedule_text(text) is None


def test_schedule_text_fallback():
    doctor = {"working_hours": None, "schedule_text": "Lunes a Viernes, 9:00 AM - 11:00 AM"}
    assert len(candidate_slots_for_date(doctor, MONDAY)) == 8
    assert candidate_slots_for_date(doctor, SUNDAY) == []


def test_schedule_text_range_can_wrap_the_week():
    doctor = {"schedule_text": "Sábado a Lunes, 10:00 - 11:00"}
    assert candidate_slots_for_date(doctor, SUNDAY) == ["10:00", "10:15", "10:30", "10:45"]
    assert candidate_slots_for_date(doctor, date(2026, 3, 11)) == []


@pytest.mark.asyncio
async def test_booked_slots_are_removed():
    doctor = {"id": "doc-1", "working_hours": {"monday": {"start": "09:00", "end": "13:00", "enabled": True}}}
    calls = []

    async def fetch_booked(doctor_id, day):
        calls.append((doctor_id, day))
        return ["09:00", "09:15"]

    slots = await get_available_slots(doctor, MONDAY, fetch_booked)

    assert calls == [("doc-1", MONDAY)]
    assert slots[0] == "09:30"
    assert slots[-1] == "12:45"
    assert "09:00" not in slots and "09:15" not in slots
    assert len(slots) == 14


@pytest.mark.asyncio
async def test_fetch_failure_fails_open():
    doctor = {"id": "doc-1", "working_hours": {"monday": {"start": "09:00", "end": "13:00", "enabled": True}}}

    async def broken(doctor_id, day):
        raise ConnectionError("appointments store unavailable")

    slots = await get_available_slots(doctor, MONDAY, broken, fail_open=True)
    assert slots == candidate_slots_for_date(doctor, MONDAY)
    assert len(slots) == 16


@pytest.mark.asyncio
async def test_fetch_failure_fail_closed():
    doctor = {"id": "doc-1", "working_hours": {"monday": {"start": "09:00", "end": "13:00", "enabled": True}}}

    async def broken(doctor_id, day):
        raise ConnectionError("appointments store unavailable")

    assert await get_available_slots(doctor, MONDAY, broken, fail_open=False) == []


@pytest.mark.asyncio
async def test_closed_day_skips_fetch():
    async def fetch_booked(doctor_id, day):
        raise AssertionError("should not be called")

    doctor = {"id": "doc-1", "working_hours": {"monday": {"start": "09:00", "end": "13:00", "enabled": False}}}
    assert await get_available_slots(doctor, MONDAY, fetch_booked) == []
