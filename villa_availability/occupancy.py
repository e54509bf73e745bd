import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from pydantic import ValidationError

from villa_availability.dates import days_diff, extract_date_str, is_valid_date, iter_days
from villa_availability.models import BookingRange

logger = logging.getLogger(__name__)

BLOCKED_DATE_KEYS = ("blocked_date", "date")
CHECK_IN_KEYS = ("check_in_date", "check_in")
CHECK_OUT_KEYS = ("check_out_date", "check_out")


@dataclass(frozen=True)
class OccupiedPeriod:
    days: Tuple[str, ...]

    @property
    def first_day(self) -> str:
        return self.days[0]

    @property
    def last_day(self) -> str:
        return self.days[-1]


@dataclass(frozen=True)
class Occupancy:
    """Merged view of a property's blocked dates and bookings."""

    occupied: FrozenSet[str] = frozenset()
    free_first_days: FrozenSet[str] = frozenset()
    periods: Tuple[OccupiedPeriod, ...] = ()
    blocked_days: FrozenSet[str] = frozenset()
    bookings: Tuple[BookingRange, ...] = ()
    booked_nights: FrozenSet[str] = frozenset()


def _first_present(record: Any, keys: Iterable[str]) -> Any:
    """Returns the first truthy value stored under any of the keys (mapping or attribute)."""
    for key in keys:
        if isinstance(record, Mapping):
            value = record.get(key)
        else:
            value = getattr(record, key, None)
        if value:
            return value
    return None


def blocked_record_date(record: Any) -> Optional[str]:
    """Canonical day of a blocked-date record: a plain date, or a mapping/object with blocked_date/date."""
    if isinstance(record, (str, date)):
        value = record
    else:
        value = _first_present(record, BLOCKED_DATE_KEYS)
        if value is None and not isinstance(record, Mapping):
            value = record
    date_str = extract_date_str(value)
    return date_str if is_valid_date(date_str) else None


def normalize_blocked_dates(records: Optional[Iterable[Any]]) -> Set[str]:
    blocked: Set[str] = set()
    for record in records or []:
        date_str = blocked_record_date(record)
        if date_str:
            blocked.add(date_str)
        else:
            logger.debug(f"Skipping blocked-date record without a usable date: {record!r}")
    return blocked


def booking_from_record(record: Any) -> Optional[BookingRange]:
    """Normalizes a booking record; returns None when check-in or check-out is unusable."""
    check_in = extract_date_str(_first_present(record, CHECK_IN_KEYS))
    check_out = extract_date_str(_first_present(record, CHECK_OUT_KEYS))
    if not check_in or not check_out:
        return None
    try:
        return BookingRange(check_in=check_in, check_out=check_out)
    except ValidationError:
        return None


def normalize_bookings(records: Optional[Iterable[Any]]) -> List[BookingRange]:
    bookings: List[BookingRange] = []
    for record in records or []:
        booking = booking_from_record(record)
        if booking is None:
            logger.debug(f"Skipping malformed booking record: {record!r}")
            continue
        bookings.append(booking)
    return bookings


def group_periods(sorted_days: List[str]) -> List[OccupiedPeriod]:
    """Groups sorted canonical days into maximal runs of consecutive days."""
    if not sorted_days:
        return []

    periods: List[OccupiedPeriod] = []
    current = [sorted_days[0]]
    for prev_day, day in zip(sorted_days, sorted_days[1:]):
        if days_diff(prev_day, day) == 1:
            current.append(day)
        else:
            periods.append(OccupiedPeriod(days=tuple(current)))
            current = [day]
    periods.append(OccupiedPeriod(days=tuple(current)))
    return periods


def build_occupancy(blocked_records: Optional[Iterable[Any]], booking_records: Optional[Iterable[Any]]) -> Occupancy:
    """Merges blocked dates and bookings into occupied periods.

    Bookings are expanded from check-in to check-out inclusive for the raw union; the
    departure day is re-admitted later through the exclusive-end booking rule and the
    free-first-day set.
    """
    blocked_days = normalize_blocked_dates(blocked_records)
    bookings = normalize_bookings(booking_records)

    all_days: Set[str] = set(blocked_days)
    booked_nights: Set[str] = set()
    for booking in bookings:
        nights = list(iter_days(booking.check_in, booking.check_out))
        booked_nights.update(nights)
        all_days.update(nights)
        all_days.add(booking.check_out)

    periods = group_periods(sorted(all_days))
    logger.debug(
        f"Merged {len(blocked_days)} blocked days and {len(bookings)} bookings into {len(periods)} periods"
    )

    return Occupancy(
        occupied=frozenset(all_days),
        free_first_days=frozenset(period.first_day for period in periods),
        periods=tuple(periods),
        blocked_days=frozenset(blocked_days),
        bookings=tuple(bookings),
        booked_nights=frozenset(booked_nights),
    )


def occupancy_from_property(data: Optional[Dict[str, Any]]) -> Occupancy:
    """Builds occupancy from a property payload carrying blocked dates and bookings."""
    data = data or {}
    blocked = data.get("blockedDates", data.get("blocked_dates"))
    bookings = data.get("bookings")
    return build_occupancy(blocked, bookings)


# --- Availability predicates ---


def _require_day(day: Any) -> str:
    date_str = extract_date_str(day)
    if date_str is None:
        raise ValueError(f"{day!r} is not a calendar day")
    return date_str


def is_date_bookable(day: Any, occupancy: Occupancy) -> bool:
    """Decides whether a single day can be selected for a stay.

    Explicit blocked dates always block. Otherwise the first day of an occupied period
    is bookable (it may be the departure morning of the previous stay), and any other
    day inside [check_in, check_out) of a booking is not.
    """
    date_str = _require_day(day)
    if date_str in occupancy.blocked_days:
        return False
    if date_str in occupancy.free_first_days:
        return True
    return date_str not in occupancy.booked_nights


def is_range_bookable(check_in: Any, check_out: Any, occupancy: Occupancy) -> bool:
    """True if every day from check_in (inclusive) to check_out (exclusive) is bookable."""
    start = _require_day(check_in)
    end = _require_day(check_out)
    return all(is_date_bookable(day, occupancy) for day in iter_days(start, end))


def is_night_free(day: Any, occupancy: Occupancy) -> bool:
    """Strict test for spending a night: neither blocked nor a night of an existing booking."""
    date_str = _require_day(day)
    return date_str not in occupancy.blocked_days and date_str not in occupancy.booked_nights


def occupied_dates_between(start: str, end: str, occupancy: Occupancy) -> List[str]:
    """Days in [start, end) that are not bookable."""
    return [day for day in iter_days(start, end) if not is_date_bookable(day, occupancy)]
