# tests/test_deadline_parser.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flowhub.deadlines.parser import parse_deadline

UTC = timezone.utc


def _dt(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def test_relative_minutes_hours_days() -> None:
    base = _dt(2024, 1, 1, 10, 0)
    assert parse_deadline("Follow up in 30 minutes", base) == _dt(2024, 1, 1, 10, 30)
    assert parse_deadline("call back in 5m", base) == base + timedelta(minutes=5)
    assert parse_deadline("Deploy in 2 hours", base) == _dt(2024, 1, 1, 12, 0)
    assert parse_deadline("ping in 1 hr", base) == _dt(2024, 1, 1, 11, 0)
    assert parse_deadline("Review in 3 days", base) == _dt(2024, 1, 4, 10, 0)


def test_relative_offset_inside_a_word() -> None:
    base = _dt(2024, 1, 1, 10, 0)
    assert parse_deadline("Reply within 30 minutes", base) == _dt(2024, 1, 1, 10, 30)
    assert parse_deadline("ship it within 2 hours", base) == _dt(2024, 1, 1, 12, 0)


def test_pure_function_of_text_and_base() -> None:
    base = _dt(2024, 1, 1, 10, 0)
    first = parse_deadline("Follow up in 30 minutes", base)
    assert all(parse_deadline("Follow up in 30 minutes", base) == first for _ in range(5))


@pytest.mark.parametrize("text", ["Finish slides tomorrow", "finish slides TOMMOROW"])
def test_tomorrow_is_next_day_at_nine(text: str) -> None:
    base = _dt(2024, 1, 3, 22, 45)
    assert parse_deadline(text, base) == _dt(2024, 1, 4, 9, 0)


def test_today_with_and_without_clock_time() -> None:
    base = _dt(2024, 1, 3, 8, 0)
    assert parse_deadline("Send invoice today", base) == _dt(2024, 1, 3, 17, 0)
    assert parse_deadline("Send invoice today at 3pm", base) == _dt(2024, 1, 3, 15, 0)
    assert parse_deadline("standup today 9:30 am", base) == _dt(2024, 1, 3, 9, 30)
    assert parse_deadline("lunch today 12pm", base) == _dt(2024, 1, 3, 12, 0)


def test_weekday_same_day_after_noon_rolls_a_week() -> None:
    base = _dt(2024, 1, 3, 14, 0)  # Wednesday
    assert parse_deadline("Board review wednesday", base) == _dt(2024, 1, 10, 9, 0)


def test_weekday_same_day_before_noon_is_end_of_day() -> None:
    base = _dt(2024, 1, 3, 10, 0)  # Wednesday
    assert parse_deadline("Board review Wed", base) == _dt(2024, 1, 3, 17, 0)


def test_weekday_next_occurrence() -> None:
    base = _dt(2024, 1, 3, 14, 0)  # Wednesday
    assert parse_deadline("Submit by friday", base) == _dt(2024, 1, 5, 9, 0)
    assert parse_deadline("plan for mon", base) == _dt(2024, 1, 8, 9, 0)
    assert parse_deadline("tuesday sync", base) == _dt(2024, 1, 9, 9, 0)


def test_weekday_needs_word_boundary() -> None:
    base = _dt(2024, 1, 3, 14, 0)
    assert parse_deadline("monitor the servers", base) is None


def test_next_week_and_this_week() -> None:
    base = _dt(2024, 1, 3, 14, 0)  # Wednesday
    assert parse_deadline("retro next week", base) == _dt(2024, 1, 10, 9, 0)
    assert parse_deadline("close books this week", base) == _dt(2024, 1, 5, 17, 0)


def test_this_week_on_friday() -> None:
    assert parse_deadline("wrap up this week", _dt(2024, 1, 5, 10, 0)) == _dt(2024, 1, 5, 17, 0)
    assert parse_deadline("wrap up this week", _dt(2024, 1, 5, 18, 0)) == _dt(2024, 1, 12, 17, 0)


@pytest.mark.parametrize("text", ["Fix prod ASAP", "urgent: renew cert", "call right now", "reply immediately"])
def test_urgency_keywords(text: str) -> None:
    base = _dt(2024, 1, 3, 14, 0)
    assert parse_deadline(text, base) == base + timedelta(minutes=5)


def test_first_rule_wins() -> None:
    base = _dt(2024, 1, 3, 14, 0)
    assert parse_deadline("tomorrow, or in 2 hours if urgent", base) == _dt(2024, 1, 3, 16, 0)
    assert parse_deadline("urgent: do it friday", base) == _dt(2024, 1, 5, 9, 0)


@pytest.mark.parametrize("text", ["", "   ", "Buy milk", "in a while"])
def test_no_match_is_none(text: str) -> None:
    assert parse_deadline(text, _dt(2024, 1, 3, 14, 0)) is None


def test_default_base_is_now() -> None:
    before = datetime.now().astimezone()
    result = parse_deadline("in 10 minutes")
    after = datetime.now().astimezone()
    assert result is not None
    assert before + timedelta(minutes=10) <= result <= after + timedelta(minutes=10)
