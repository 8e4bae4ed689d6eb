from datetime import date

from date_utils import (
    add_days,
    get_adjacent_weeks,
    get_three_week_range,
    get_week_difference,
    get_week_end,
    get_week_start,
    is_sunday,
    is_valid_date_string,
)


def test_week_start_and_end_run_sunday_to_saturday():
    wednesday = date(2025, 1, 8)
    assert get_week_start(wednesday) == "2025-01-05"
    assert get_week_end(wednesday) == "2025-01-11"


def test_week_start_on_sunday_and_saturday():
    assert get_week_start(date(2025, 1, 5)) == "2025-01-05"
    assert get_week_start(date(2025, 1, 11)) == "2025-01-05"
    assert get_week_end(date(2025, 1, 11)) == "2025-01-11"


def test_adjacent_weeks_cross_year():
    assert get_adjacent_weeks("2024-12-29") == ("2024-12-22", "2025-01-05")


def test_three_week_range():
    assert get_three_week_range(date(2025, 1, 8)) == ["2024-12-29", "2025-01-05", "2025-01-12"]


def test_is_valid_date_string():
    assert is_valid_date_string("2025-01-05")
    assert not is_valid_date_string("2025-1-5")
    assert not is_valid_date_string("2025-02-30")
    assert not is_valid_date_string("Sunday")
    assert not is_valid_date_string("")


def test_is_sunday():
    assert is_sunday("2025-01-05")
    assert not is_sunday("2025-01-06")


def test_add_days_and_week_difference():
    assert add_days("2025-01-05", 6) == "2025-01-11"
    assert get_week_difference("2025-01-05", "2025-01-19") == 2
    assert get_week_difference("2025-01-19", "2025-01-05") == -2
