from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class EntryMode(str, Enum):
    PER_TRIP = "PER_TRIP"
    FULL_TANK = "FULL_TANK"


class FuelEventStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class FuelEventBase(BaseModel):
    """Fields entered by the fuel agent"""

    truck_id: str = Field(..., min_length=1)
    driver_id: str = Field(..., min_length=1)
    station_id: Optional[str] = None
    entry_mode: EntryMode = EntryMode.FULL_TANK
    odometer: int = Field(..., ge=0)
    liters: float
    unit_price: float


class FuelEventCreate(FuelEventBase):
    """Schema used when recording a new refueling.

    ``fueling_date`` defaults to today in the configured timezone.
    """

    fueling_date: Optional[date] = None
    status: FuelEventStatus = FuelEventStatus.COMPLETED


class FuelEventUpdate(BaseModel):
    """Operator edit of an existing refueling; the baseline is not editable"""

    driver_id: Optional[str] = None
    station_id: Optional[str] = None
    fueling_date: Optional[date] = None
    entry_mode: Optional[EntryMode] = None
    odometer: Optional[int] = Field(None, ge=0)
    liters: Optional[float] = None
    unit_price: Optional[float] = None
    status: Optional[FuelEventStatus] = None

    CLEARABLE: ClassVar[FrozenSet[str]] = frozenset({"station_id"})

    def changes(self) -> Dict[str, Any]:
        """Fields the caller sent; an explicit null only clears optional ones"""
        sent = self.model_dump(exclude_unset=True)
        return {k: v for k, v in sent.items() if v is not None or k in self.CLEARABLE}


class FuelEvent(FuelEventBase):
    id: str
    fueling_date: date
    attribution_date: date
    previous_odometer: int
    status: FuelEventStatus = FuelEventStatus.COMPLETED
    agent_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def distance_km(self) -> int:
        return self.odometer - self.previous_odometer


class FuelEventView(FuelEvent):
    """Fuel history row as returned to the presentation layer"""

    truck_label: str
    driver_label: Optional[str] = None
    station_label: Optional[str] = None
    km_per_liter: Optional[float] = None


class FuelHistoryRequestDTO(BaseModel):
    truck_id: Optional[str] = None
    date_range_start: Optional[date] = Field(None, description="YYYY-MM-DD")
    date_range_end: Optional[date] = Field(None, description="YYYY-MM-DD")
    entry_mode: Optional[EntryMode] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(30, ge=1)

    @field_validator("date_range_end")
    @classmethod
    def validate_date_range(cls, end: Optional[date], info: ValidationInfo):
        start = info.data.get("date_range_start")
        if start and end and end < start:
            raise ValueError(
                "date_range_end must be after or equal to date_range_start"
            )
        return end


class PreviousOdometerResponse(BaseModel):
    truck_id: str
    fueling_date: date
    previous_odometer: int


class AttributionDateResponse(BaseModel):
    fueling_date: date
    entry_mode: EntryMode
    attribution_date: date
