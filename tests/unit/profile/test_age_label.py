from __future__ import annotations

from datetime import date

import pytest

from memory_box.profile import calculate_age_label


@pytest.mark.parametrize(
    ("birthdate", "reference", "expected"),
    [
        ("2022-01-15", date(2024, 4, 20), "2 岁 3 个月"),
        ("2023-04-20", date(2024, 4, 20), "1 岁"),
        ("2024-01-10", date(2024, 4, 20), "3 个月"),
        ("2024-04-08", date(2024, 4, 20), "12 天"),
        ("2024-04-20", date(2024, 4, 20), "刚到来"),
        ("2017-01-01", date(2024, 6, 1), "7 岁"),
        ("2018-12-01", date(2024, 6, 1), "5 岁 6 个月"),
    ],
)
def test_age_label(birthdate: str, reference: date, expected: str) -> None:
    assert calculate_age_label(birthdate, reference) == expected


def test_borrows_days_from_previous_month() -> None:
    # February 2024 has 29 days, February 2023 has 28
    assert calculate_age_label("2024-02-20", date(2024, 3, 10)) == "19 天"
    assert calculate_age_label("2023-02-20", date(2023, 3, 10)) == "18 天"


def test_borrow_across_year_boundary() -> None:
    assert calculate_age_label("2023-12-20", date(2024, 1, 5)) == "16 天"


@pytest.mark.parametrize("birthdate", ["", "not-a-date", "2024-13-01"])
def test_invalid_birthdate_gives_empty_label(birthdate: str) -> None:
    assert calculate_age_label(birthdate, date(2024, 4, 20)) == ""


def test_future_birthdate_gives_empty_label() -> None:
    assert calculate_age_label("2024-05-01", date(2024, 4, 20)) == ""
