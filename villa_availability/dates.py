import calendar
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from villa_availability import config

logger = logging.getLogger(__name__)

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
DATE_FORMAT = "%Y-%m-%d"


def extract_date_str(value: Any) -> Optional[str]:
    """Returns the leading YYYY-MM-DD part of a value, or None if it has none."""
    if not value:
        return None
    text = str(value)
    if DATE_PREFIX_RE.match(text):
        return text[:10]
    return None


def _parse(date_str: str) -> date:
    return datetime.strptime(date_str, DATE_FORMAT).date()


def is_valid_date(date_str: Optional[str]) -> bool:
    """True if the string is a canonical YYYY-MM-DD naming a real calendar day."""
    if not date_str or len(date_str) != 10:
        return False
    try:
        _parse(date_str)
    except ValueError:
        return False
    return True


def add_days(date_str: str, days: int) -> str:
    """Adds whole days to a canonical date string."""
    return (_parse(date_str) + timedelta(days=days)).strftime(DATE_FORMAT)


def days_diff(date1_str: str, date2_str: str) -> int:
    """Number of whole days from date1 to date2 (positive if date2 is later)."""
    return (_parse(date2_str) - _parse(date1_str)).days


def iter_days(start_str: str, end_str: str) -> Iterator[str]:
    """Yields every canonical day from start (inclusive) to end (exclusive)."""
    current = start_str
    while current < end_str:
        yield current
        current = add_days(current, 1)


# --- Business timezone (fixed UTC offset) ---


def business_timezone() -> timezone:
    return timezone(timedelta(hours=config.BUSINESS_UTC_OFFSET_HOURS), name="Asia/Bangkok")


def today_in_bangkok(now: Optional[datetime] = None) -> str:
    """Today's date in the business timezone.

    Args:
        now: Reference instant. Naive values are treated as UTC. Defaults to the current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(business_timezone()).strftime(DATE_FORMAT)


def to_date_str_bangkok(value: Any) -> Optional[str]:
    """Converts a date, datetime or ISO string to a canonical day in the business timezone.

    Plain YYYY-MM-DD strings and date objects are returned unchanged; timestamps are
    shifted to the business offset first.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return today_in_bangkok(value)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)

    text = str(value).strip()
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", text):
        return text
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Cannot interpret {text!r} as a date")
        return None
    return today_in_bangkok(parsed)


def is_past_date_bangkok(date_str: Optional[str], today: Optional[str] = None) -> bool:
    if not date_str:
        return False
    if today is None:
        today = today_in_bangkok()
    return date_str < today


def calculate_nights(check_in: Optional[str], check_out: Optional[str]) -> int:
    if not check_in or not check_out:
        return 0
    return days_diff(check_in, check_out)


def month_bounds(year: int, month: int) -> Tuple[str, str]:
    """First and last canonical day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1).strftime(DATE_FORMAT), date(year, month, last_day).strftime(DATE_FORMAT)


def month_grid(year: int, month: int) -> List[Optional[Dict[str, Any]]]:
    """Calendar cells for a month, weeks starting on Monday.

    Leading cells before the 1st are None; every other cell is
    {"day": <int>, "date_str": "YYYY-MM-DD"}.
    """
    first_weekday, days_in_month = calendar.monthrange(year, month)
    cells: List[Optional[Dict[str, Any]]] = [None] * first_weekday
    for day in range(1, days_in_month + 1):
        cells.append({"day": day, "date_str": date(year, month, day).strftime(DATE_FORMAT)})
    return cells
