"""
Unit tests for stay-date helpers.
"""

from __future__ import annotations

from datetime import date, timezone

import pytest

from hotel_booking.utils.datetime import nights_between, ranges_overlap, stay_nights, utc_now


@pytest.mark.unit
def test_utc_now_is_timezone_aware() -> None:
    assert utc_now().tzinfo == timezone.utc


@pytest.mark.unit
def test_nights_between_counts_nights_not_days() -> None:
    assert nights_between(date(2026, 4, 1), date(2026, 4, 5)) == 4
    assert nights_between(date(2026, 4, 1), date(2026, 4, 2)) == 1


@pytest.mark.unit
def test_stay_nights_excludes_check_out_day() -> None:
    nights = stay_nights(date(2026, 4, 1), date(2026, 4, 4))

    assert nights == [date(2026, 4, 1), date(2026, 4, 2), date(2026, 4, 3)]


@pytest.mark.unit
def test_stay_nights_crosses_month_boundary() -> None:
    nights = stay_nights(date(2026, 4, 29), date(2026, 5, 2))

    assert nights == [date(2026, 4, 29), date(2026, 4, 30), date(2026, 5, 1)]


@pytest.mark.unit
def test_stay_nights_empty_for_non_positive_range() -> None:
    assert stay_nights(date(2026, 4, 5), date(2026, 4, 5)) == []


@pytest.mark.unit
@pytest.mark.parametrize(
    ("other_start", "other_end", "expected"),
    [
        (date(2026, 4, 1), date(2026, 4, 5), True),  # identical
        (date(2026, 4, 3), date(2026, 4, 7), True),  # partial overlap
        (date(2026, 4, 2), date(2026, 4, 3), True),  # contained
        (date(2026, 3, 28), date(2026, 4, 10), True),  # containing
        (date(2026, 4, 5), date(2026, 4, 8), False),  # starts on check-out day
        (date(2026, 3, 28), date(2026, 4, 1), False),  # ends on check-in day
        (date(2026, 4, 10), date(2026, 4, 12), False),  # disjoint
    ],
)
def test_ranges_overlap_is_half_open(other_start: date, other_end: date, expected: bool) -> None:
    assert ranges_overlap(date(2026, 4, 1), date(2026, 4, 5), other_start, other_end) is expected
