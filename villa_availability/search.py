import logging
from typing import List, Optional

from villa_availability import config
from villa_availability.dates import add_days, days_diff, iter_days
from villa_availability.models import AvailableSlot, PeriodAvailability, SearchWindow
from villa_availability.occupancy import Occupancy, is_night_free, is_range_bookable, occupied_dates_between

logger = logging.getLogger(__name__)


def candidate_nights(window: SearchWindow) -> List[str]:
    """Days on which a stay in the window may spend a night.

    A month window covers every day of the month; a period window covers
    [start_date, end_date), so no slot checks out after end_date.
    """
    first_day, last_day = window.bounds()
    if window.mode == "month":
        return list(iter_days(first_day, add_days(last_day, 1)))
    return list(iter_days(first_day, last_day))


def _free_runs(days: List[str], occupancy: Occupancy) -> List[List[str]]:
    """Splits consecutive window days into maximal runs of free nights."""
    runs: List[List[str]] = []
    current: List[str] = []
    for day in days:
        if is_night_free(day, occupancy):
            current.append(day)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def find_available_slots(window: SearchWindow, occupancy: Occupancy) -> List[AvailableSlot]:
    """Lists every stay of exactly window.nights_count nights that fits in the window.

    Each free run of K nights with K >= nights_count yields one slot per possible
    check-in, from the run's first day to K - nights_count days later. The stay checks
    out the day after its last night, which may be the first day of an occupied period
    or a day past the window. Results are chronological and capped at window.limit.
    """
    nights = window.nights_count
    slots: List[AvailableSlot] = []

    for run in _free_runs(candidate_nights(window), occupancy):
        if len(run) < nights:
            continue
        for check_in in run[: len(run) - nights + 1]:
            slots.append(AvailableSlot(check_in=check_in, check_out=add_days(check_in, nights), nights=nights))
            if len(slots) >= window.limit:
                logger.debug(f"Slot limit {window.limit} reached at {check_in}")
                return slots

    logger.debug(f"Found {len(slots)} slots of {nights} nights in {window.bounds()}")
    return slots


def check_period_availability(
    start_date: str,
    end_date: str,
    occupancy: Occupancy,
    nights_count: int,
    nearest_limit: Optional[int] = None,
) -> PeriodAvailability:
    """Checks a requested stay and, when it is not fully free, proposes the nearest slots inside it."""
    window = SearchWindow.for_period(
        start_date,
        end_date,
        nights_count,
        limit=nearest_limit or config.NEAREST_SLOTS_LIMIT,
    )
    total_days = days_diff(window.start_date, window.end_date)
    is_fully_available = is_range_bookable(window.start_date, window.end_date, occupancy)

    occupied_dates: List[str] = []
    nearest_slots: List[AvailableSlot] = []
    if not is_fully_available:
        occupied_dates = occupied_dates_between(window.start_date, window.end_date, occupancy)
        nearest_slots = find_available_slots(window, occupancy)

    free_days = total_days - len(occupied_dates)
    return PeriodAvailability(
        is_fully_available=is_fully_available,
        is_partially_available=not is_fully_available and free_days > 0,
        total_days=total_days,
        free_days=free_days,
        occupied_days=len(occupied_dates),
        occupied_dates=occupied_dates,
        nearest_slots=nearest_slots,
    )
