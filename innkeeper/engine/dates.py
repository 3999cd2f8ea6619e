"""Calendar-day helpers shared by the engine modules."""

from datetime import date, timedelta
from typing import Iterator

from ..exceptions import InvalidDateRange


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield the occupied nights of a stay: check_in inclusive, check_out exclusive."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def validate_stay(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise InvalidDateRange(
            check_in, check_out,
            f"Check-out {check_out} must be after check-in {check_in}"
        )


def validate_query_range(start: date, end: date) -> None:
    if end < start:
        raise InvalidDateRange(start, end, f"Range end {end} is before start {start}")
