import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from villa_availability.dates import calculate_nights, is_past_date_bangkok, month_grid, today_in_bangkok
from villa_availability.models import SearchWindow
from villa_availability.occupancy import Occupancy, is_date_bookable, is_range_bookable

logger = logging.getLogger(__name__)

RangeSelectedCallback = Callable[[str, str], None]
UnavailableCallback = Callable[[SearchWindow], None]


def day_status(date_str: str, occupancy: Occupancy, today: Optional[str] = None) -> str:
    """Calendar cell status: "past", "blocked" or "free"."""
    if is_past_date_bangkok(date_str, today):
        return "past"
    if not is_date_bookable(date_str, occupancy):
        return "blocked"
    return "free"


def month_view(year: int, month: int, occupancy: Occupancy, today: Optional[str] = None) -> List[Optional[Dict[str, Any]]]:
    """Month grid (Monday first) with a status on every day cell."""
    if today is None:
        today = today_in_bangkok()
    cells = month_grid(year, month)
    for cell in cells:
        if cell is not None:
            cell["status"] = day_status(cell["date_str"], occupancy, today)
            cell["is_today"] = cell["date_str"] == today
    return cells


class SelectionState(str, Enum):
    EMPTY = "empty"
    FIRST_PICKED = "first_picked"
    RANGE_CONFIRMED = "range_confirmed"


class DateRangeSelection:
    """Two-click check-in/check-out picker over a property's occupancy.

    An unbookable range is never kept: the selection resets to EMPTY and
    on_unavailable receives the requested period so alternatives can be searched.
    """

    def __init__(
        self,
        occupancy: Occupancy,
        on_range_selected: Optional[RangeSelectedCallback] = None,
        on_unavailable: Optional[UnavailableCallback] = None,
        today: Optional[str] = None,
    ):
        self.occupancy = occupancy
        self.on_range_selected = on_range_selected
        self.on_unavailable = on_unavailable
        self.today = today
        self.start: Optional[str] = None
        self.end: Optional[str] = None
        self.unavailable = False

    @property
    def state(self) -> SelectionState:
        if self.start is None:
            return SelectionState.EMPTY
        if self.end is None:
            return SelectionState.FIRST_PICKED
        return SelectionState.RANGE_CONFIRMED

    def clear(self):
        self.start = None
        self.end = None
        self.unavailable = False

    def click(self, date_str: str) -> SelectionState:
        """Applies a click on a calendar day and returns the resulting state."""
        if not date_str or day_status(date_str, self.occupancy, self.today) != "free":
            logger.debug(f"Ignoring click on unselectable day {date_str}")
            return self.state

        if self.state != SelectionState.FIRST_PICKED:
            self.start, self.end = date_str, None
            self.unavailable = False
            return self.state

        if date_str < self.start:
            check_in, check_out = date_str, self.start
        else:
            check_in, check_out = self.start, date_str

        if not is_range_bookable(check_in, check_out, self.occupancy):
            logger.info(f"Range {check_in} - {check_out} overlaps occupied dates")
            self.clear()
            self.unavailable = True
            if self.on_unavailable:
                self.on_unavailable(
                    SearchWindow.for_period(check_in, check_out, calculate_nights(check_in, check_out))
                )
            return self.state

        self.start, self.end = check_in, check_out
        self.unavailable = False
        if self.on_range_selected:
            self.on_range_selected(check_in, check_out)
        return self.state
