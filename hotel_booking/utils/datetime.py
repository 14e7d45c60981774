"""UTC datetime and stay-date utilities."""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def nights_between(check_in: date, check_out: date) -> int:
    """Number of nights in the half-open stay [check_in, check_out)."""
    return (check_out - check_in).days


def stay_nights(check_in: date, check_out: date) -> list[date]:
    """
    List every night occupied by the stay [check_in, check_out).

    The check-out day itself is not occupied, so adjacent stays never share a night.

    Example:
        >>> stay_nights(date(2026, 4, 1), date(2026, 4, 3))
        [datetime.date(2026, 4, 1), datetime.date(2026, 4, 2)]
    """
    return [check_in + timedelta(days=offset) for offset in range(nights_between(check_in, check_out))]


def ranges_overlap(
    first_start: date, first_end: date, second_start: date, second_end: date
) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return first_start < second_end and first_end > second_start
