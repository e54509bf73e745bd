import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from villa_availability import alternatives, client, config
from villa_availability.models import AlternativeCandidate, AvailableSlot, PeriodAvailability, PropertyId, SearchWindow
from villa_availability.occupancy import Occupancy
from villa_availability.search import check_period_availability, find_available_slots

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    window: SearchWindow
    slots: List[AvailableSlot] = field(default_factory=list)
    period_check: Optional[PeriodAvailability] = None
    alternatives: Optional[List[AlternativeCandidate]] = None


def load_occupancy(property_id: PropertyId) -> Occupancy:
    occupancy = client.fetch_occupancy(property_id)
    if occupancy is None:
        logger.error(f"Could not load availability for property #{property_id}. Exiting.")
        sys.exit(1)
    return occupancy


def attach_prices(property_id: PropertyId, slots: List[AvailableSlot]) -> List[AvailableSlot]:
    """Asks the pricing backend for each slot; a failed quote leaves that slot unpriced."""
    priced = []
    for slot in slots:
        quote = client.calculate_price(property_id, slot.check_in, slot.check_out)
        if not quote:
            logger.warning(f"No price for {slot.check_in} - {slot.check_out}")
            priced.append(slot)
            continue
        priced.append(
            slot.model_copy(
                update={"total_price": quote.get("totalPrice"), "price_per_night": quote.get("pricePerNight")}
            )
        )
    return priced


def print_slots_report(property_id: PropertyId, window: SearchWindow, slots: List[AvailableSlot]):
    """Prints the found slots to stdout."""
    first_day, last_day = window.bounds()
    print(f"\n--- {window.nights_count}-night stays at #{property_id}, {first_day} .. {last_day} ---")

    for slot in slots:
        price = f"  ฿{slot.total_price:,.0f}" if slot.total_price is not None else ""
        print(f"[FREE] {slot.check_in} -> {slot.check_out} ({slot.nights} nights){price}")

    if slots:
        print(f"Summary: Found {len(slots)} available periods!")
    else:
        print("Summary: No free periods in this window.")


def print_period_report(period_check: PeriodAvailability):
    if period_check.is_fully_available:
        print(f"\nThe whole period is free ({period_check.total_days} nights).")
        return

    print(
        f"\nPeriod is {'partially available' if period_check.is_partially_available else 'fully occupied'}: "
        f"{period_check.free_days} of {period_check.total_days} days free, {period_check.occupied_days} occupied"
    )
    shown = period_check.occupied_dates[:5]
    extra = len(period_check.occupied_dates) - len(shown)
    print(f"Occupied dates: {', '.join(shown)}" + (f" (+{extra} more)" if extra > 0 else ""))
    for slot in period_check.nearest_slots:
        print(f"[NEAREST] {slot.check_in} -> {slot.check_out} ({slot.nights} nights)")


def print_alternatives_report(candidates: List[AlternativeCandidate]):
    if not candidates:
        print("\nNo alternative properties with free dates.")
        return

    print(f"\n--- {len(candidates)} alternative properties ---")
    for candidate in candidates:
        slot = candidate.first_slot
        more = f" (+{len(candidate.available_slots) - 1} more)" if candidate.has_more_slots else ""
        print(f"#{candidate.property_id} {candidate.name or ''}: {slot.check_in} -> {slot.check_out}{more}")


def search_month(
    property_id: PropertyId, window: SearchWindow, with_prices: bool = False, find_alternatives: bool = True
) -> SearchOutcome:
    """Month search: list free slots, fall back to alternative properties when there are none."""
    occupancy = load_occupancy(property_id)
    outcome = SearchOutcome(window=window, slots=find_available_slots(window, occupancy))

    if outcome.slots:
        logger.info(f"Found {len(outcome.slots)} slots")
        if with_prices:
            outcome.slots = attach_prices(property_id, outcome.slots)
    elif find_alternatives:
        outcome.alternatives = alternatives.find_alternatives(property_id, window)

    return outcome


def search_period(
    property_id: PropertyId, window: SearchWindow, with_prices: bool = False, find_alternatives: bool = True
) -> SearchOutcome:
    """Period search: check the whole stay, then look for shorter slots and alternatives if it is taken."""
    occupancy = load_occupancy(property_id)
    period_check = check_period_availability(window.start_date, window.end_date, occupancy, window.nights_count)
    outcome = SearchOutcome(window=window, period_check=period_check)

    if not period_check.is_fully_available:
        outcome.slots = find_available_slots(window, occupancy)
        if find_alternatives:
            outcome.alternatives = alternatives.find_alternatives(property_id, window)

    if with_prices and outcome.slots:
        outcome.slots = attach_prices(property_id, outcome.slots)
    return outcome


def build_window(
    month: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    nights: int,
    limit: int = config.DEFAULT_SLOT_LIMIT,
) -> SearchWindow:
    """Builds a month window from "YYYY-MM", otherwise a period window. Raises ValueError on bad input."""
    if month:
        year_str, _, month_str = month.partition("-")
        if not (year_str.isdigit() and month_str.isdigit()):
            raise ValueError(f"Month must be in YYYY-MM format, got {month!r}")
        return SearchWindow.for_month(int(year_str), int(month_str), nights, limit=limit)
    return SearchWindow.for_period(start_date, end_date, nights, limit=limit)


def run(
    property_id: PropertyId,
    month: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    nights: int = config.DEFAULT_NIGHTS,
    limit: int = config.DEFAULT_SLOT_LIMIT,
    with_prices: bool = False,
    find_alternatives: bool = True,
) -> SearchOutcome:
    """Core orchestration logic. Builds the search window, searches the property and
    prints the reports."""
    window = build_window(month, start_date, end_date, nights, limit)

    first_day, last_day = window.bounds()
    logger.info(f"Searching {nights}-night stays at #{property_id} between {first_day} and {last_day}")

    if window.mode == "month":
        outcome = search_month(property_id, window, with_prices, find_alternatives)
    else:
        outcome = search_period(property_id, window, with_prices, find_alternatives)
        print_period_report(outcome.period_check)

    if window.mode == "month" or not outcome.period_check.is_fully_available:
        print_slots_report(property_id, window, outcome.slots)
    if outcome.alternatives is not None:
        print_alternatives_report(outcome.alternatives)
    return outcome
