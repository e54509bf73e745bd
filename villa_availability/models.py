from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from villa_availability import config
from villa_availability.dates import extract_date_str, is_valid_date, month_bounds

PropertyId = Union[int, str]


def _canonical_date(value: Any) -> Optional[str]:
    if value is None:
        return None
    date_str = extract_date_str(value)
    if not is_valid_date(date_str):
        raise ValueError(f"{value!r} is not a YYYY-MM-DD date")
    return date_str


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingRange(CamelModel):
    check_in: str  # inclusive
    check_out: str  # exclusive, the departure day

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalize_day(cls, value: Any) -> Optional[str]:
        return _canonical_date(value)

    @model_validator(mode="after")
    def _check_order(self) -> "BookingRange":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class AvailableSlot(CamelModel):
    check_in: str
    check_out: str
    nights: int
    total_price: Optional[float] = None
    price_per_night: Optional[float] = None


class SearchWindow(CamelModel):
    """Where to look for free stays: a whole month or an explicit period."""

    mode: Literal["month", "period"]
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    nights_count: int = Field(default=config.DEFAULT_NIGHTS, ge=1)
    limit: int = Field(default=config.DEFAULT_SLOT_LIMIT, ge=1)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _normalize_day(cls, value: Any) -> Optional[str]:
        return _canonical_date(value)

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "SearchWindow":
        if self.mode == "month":
            if self.year is None or self.month is None:
                raise ValueError("month search needs both year and month")
        else:
            if not self.start_date or not self.end_date:
                raise ValueError("period search needs start_date and end_date")
            if self.end_date <= self.start_date:
                raise ValueError("end_date must be after start_date")
        return self

    @classmethod
    def for_month(
        cls, year: int, month: int, nights_count: int, limit: int = config.DEFAULT_SLOT_LIMIT
    ) -> "SearchWindow":
        return cls(mode="month", year=year, month=month, nights_count=nights_count, limit=limit)

    @classmethod
    def for_period(
        cls, start_date: str, end_date: str, nights_count: int, limit: int = config.DEFAULT_SLOT_LIMIT
    ) -> "SearchWindow":
        return cls(mode="period", start_date=start_date, end_date=end_date, nights_count=nights_count, limit=limit)

    def bounds(self) -> Tuple[str, str]:
        """First and last day of the window, both inclusive."""
        if self.mode == "month":
            return month_bounds(self.year, self.month)
        return self.start_date, self.end_date

    def to_request_params(self) -> Dict[str, Any]:
        """Request body for the backend's find-available-slots endpoint."""
        params: Dict[str, Any] = {"searchMode": self.mode}
        if self.mode == "month":
            params.update(month=self.month, year=self.year)
        else:
            params.update(startDate=self.start_date, endDate=self.end_date)
        params.update(nightsCount=self.nights_count, limit=self.limit)
        return params


class PeriodAvailability(CamelModel):
    is_fully_available: bool
    is_partially_available: bool
    total_days: int
    free_days: int
    occupied_days: int
    occupied_dates: List[str]
    nearest_slots: List[AvailableSlot]


class AlternativeCandidate(CamelModel):
    property_id: PropertyId
    name: Optional[str] = None
    available_slots: List[AvailableSlot]
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def first_slot(self) -> Optional[AvailableSlot]:
        return self.available_slots[0] if self.available_slots else None

    @property
    def has_more_slots(self) -> bool:
        return len(self.available_slots) > 1
