"""Tests for cron parsing and minute matching."""

from datetime import datetime

import pytest

from app.application.services.cron import CronExpression, is_valid_cron


def test_wildcards_match_everything() -> None:
    cron = CronExpression.parse("* * * * *")
    assert cron.matches(datetime(2024, 3, 9, 17, 42))


def test_steps_ranges_and_lists() -> None:
    cron = CronExpression.parse("*/15 9-17 * * 1,3,5")
    assert cron.minutes == frozenset({0, 15, 30, 45})
    assert cron.hours == frozenset(range(9, 18))
    # 2024-03-06 is a Wednesday.
    assert cron.matches(datetime(2024, 3, 6, 9, 30))
    assert not cron.matches(datetime(2024, 3, 6, 9, 31))
    assert not cron.matches(datetime(2024, 3, 7, 9, 30))


def test_seven_means_sunday() -> None:
    """Day-of-week 7 is folded into 0."""
    cron = CronExpression.parse("0 0 * * 7")
    assert cron.weekdays == frozenset({0})
    # 2024-03-10 is a Sunday.
    assert cron.matches(datetime(2024, 3, 10, 0, 0))


def test_day_of_month_or_day_of_week() -> None:
    """When both day fields are restricted either one may match."""
    cron = CronExpression.parse("0 12 1 * 1")
    # Friday the 1st, and Monday the 4th.
    assert cron.matches(datetime(2024, 3, 1, 12, 0))
    assert cron.matches(datetime(2024, 3, 4, 12, 0))
    assert not cron.matches(datetime(2024, 3, 5, 12, 0))


def test_optional_year_field() -> None:
    cron = CronExpression.parse("0 0 1 1 * 2030")
    assert cron.matches(datetime(2030, 1, 1, 0, 0))
    assert not cron.matches(datetime(2031, 1, 1, 0, 0))


def test_wrong_field_count() -> None:
    with pytest.raises(ValueError) as exc_info:
        CronExpression.parse("* * * *")
    assert str(exc_info.value) == (
        "Cron expression must have 5 or 6 parts (minute hour day month weekday [year])"
    )


@pytest.mark.parametrize("expression", ["60 * * * *", "* 24 * * *", "* * 0 * *", "*/0 * * * *", "a * * * *"])
def test_invalid_fields(expression: str) -> None:
    assert not is_valid_cron(expression)
