import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from villa_availability import client, config
from villa_availability.dates import add_days
from villa_availability.models import AlternativeCandidate, AvailableSlot, PropertyId, SearchWindow
from villa_availability.search import find_available_slots

logger = logging.getLogger(__name__)

SlotFinder = Callable[[PropertyId, SearchWindow], List[AvailableSlot]]


def period_window(window: SearchWindow) -> SearchWindow:
    """Period window with the same candidate nights; a month window checks out by the 1st of the next month."""
    start_date, end_date = window.bounds()
    if window.mode == "month":
        end_date = add_days(end_date, 1)
    return SearchWindow.for_period(start_date, end_date, window.nights_count, limit=window.limit)


def alternatives_request_params(window: SearchWindow) -> Dict[str, Any]:
    start_date, end_date = window.bounds()
    return {"startDate": start_date, "endDate": end_date, "nightsCount": window.nights_count}


def occupancy_slot_finder(property_id: PropertyId, window: SearchWindow) -> List[AvailableSlot]:
    """Default per-candidate search: load the candidate's occupancy and run the slot finder on it."""
    occupancy = client.fetch_occupancy(property_id)
    if occupancy is None:
        raise LookupError(f"No occupancy data for property {property_id}")
    return find_available_slots(window, occupancy)


def _candidate_slots(slot_finder: SlotFinder, property_id: PropertyId, window: SearchWindow) -> List[AvailableSlot]:
    try:
        return slot_finder(property_id, window)
    except Exception as e:
        logger.error(f"Error finding slots for property #{property_id}: {e}")
        return []


def find_alternatives(
    property_id: PropertyId,
    window: SearchWindow,
    slot_finder: Optional[SlotFinder] = None,
    max_workers: Optional[int] = None,
) -> List[AlternativeCandidate]:
    """Finds sibling properties that can host the requested stay.

    Every candidate is searched independently; a candidate whose search fails or
    yields no slots is left out. The backend's candidate order is preserved.
    """
    slot_finder = slot_finder or occupancy_slot_finder
    properties = client.find_alternative_properties(property_id, alternatives_request_params(window))
    if not properties:
        logger.info(f"No alternative properties suggested for #{property_id}")
        return []

    search_window = period_window(window)
    candidates = [p for p in properties if isinstance(p, dict) and p.get("id") is not None]
    logger.info(f"Searching slots for {len(candidates)} alternatives to #{property_id}")

    with ThreadPoolExecutor(max_workers=max_workers or config.ALTERNATIVES_MAX_WORKERS) as executor:
        futures = [
            executor.submit(_candidate_slots, slot_finder, candidate["id"], search_window) for candidate in candidates
        ]
        results = [future.result() for future in futures]

    alternatives = []
    for candidate, slots in zip(candidates, results):
        if not slots:
            logger.debug(f"Dropping property #{candidate['id']}: no free slots")
            continue
        alternatives.append(
            AlternativeCandidate(
                property_id=candidate["id"],
                name=candidate.get("property_name") or candidate.get("name"),
                available_slots=slots,
                details=candidate,
            )
        )
    return alternatives


class RequestTracker:
    """Tags searches with increasing keys so callers can ignore results of superseded ones."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0

    def begin(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, key: int) -> bool:
        with self._lock:
            return key == self._latest


def find_latest_alternatives(
    tracker: RequestTracker,
    property_id: PropertyId,
    window: SearchWindow,
    slot_finder: Optional[SlotFinder] = None,
) -> Optional[List[AlternativeCandidate]]:
    """Runs find_alternatives and returns None if a newer search started meanwhile."""
    key = tracker.begin()
    alternatives = find_alternatives(property_id, window, slot_finder=slot_finder)
    if not tracker.is_current(key):
        logger.debug(f"Discarding stale alternatives result #{key}")
        return None
    return alternatives
