from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from src.fleet_ledger.fuel_events.schemas import EntryMode
from src.fleet_ledger.trip_records.schemas import (
    BatchKey,
    TransactionType,
    TripRecordView,
)


class AdjustmentField(str, Enum):
    TRIP_COUNT = "trip_count"
    DIESEL_STOCK = "diesel_stock"
    DIESEL_OTHER = "diesel_other"


class BatchAdjustment(BaseModel):
    """Manual corrections recorded once per batch"""

    production_date: date
    truck_id: str
    transaction_type: TransactionType
    trip_count_adjustment: int = 0
    trip_remarks: Optional[str] = None
    diesel_stock_adjustment: float = 0.0
    diesel_remarks: Optional[str] = None
    diesel_other_adjustment: float = 0.0
    other_remarks: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def key(self) -> BatchKey:
        return BatchKey(
            production_date=self.production_date,
            truck_id=self.truck_id,
            transaction_type=self.transaction_type,
        )

    @classmethod
    def empty(cls, key: BatchKey) -> "BatchAdjustment":
        return cls(
            production_date=key.production_date,
            truck_id=key.truck_id,
            transaction_type=key.transaction_type,
        )


class BatchAdjustmentRequest(BaseModel):
    field: AdjustmentField
    value: float = Field(..., allow_inf_nan=False)
    remark: Optional[str] = None


class BatchMoveRequest(BaseModel):
    production_date: Optional[date] = None
    driver_id: Optional[str] = None


class Batch(BaseModel):
    production_date: date
    truck_id: str
    transaction_type: TransactionType
    truck_label: str
    driver_id: Optional[str] = None
    driver_label: Optional[str] = None

    record_count: int = 0
    net_weight_total: Decimal = Decimal("0")
    total_shortage: Optional[Decimal] = None

    fuel_liters: float = 0.0
    fuel_event_ids: List[str] = Field(default_factory=list)
    fuel_entry_modes: List[EntryMode] = Field(default_factory=list)
    fuel_dates: List[date] = Field(default_factory=list)

    carry_in_stock: float = 0.0
    trip_count_adjustment: int = 0
    trip_remarks: Optional[str] = None
    diesel_stock_adjustment: float = 0.0
    diesel_remarks: Optional[str] = None
    diesel_other_adjustment: float = 0.0
    other_remarks: Optional[str] = None

    effective_trip_count: int = 0
    net_diesel_consumption: float = 0.0
    per_trip_diesel_average: float = 0.0
    diesel_rate: float = 0.0
    diesel_cost: float = 0.0

    flat_fee: int = 0
    per_trip_fee: int = 0
    total_payable: int = 0

    warnings: List[str] = Field(default_factory=list)
    records: List[TripRecordView] = Field(default_factory=list)

    @property
    def key(self) -> BatchKey:
        return BatchKey(
            production_date=self.production_date,
            truck_id=self.truck_id,
            transaction_type=self.transaction_type,
        )


class BatchListRequestDTO(BaseModel):
    date_range_start: date = Field(..., description="Start date in YYYY-MM-DD format")
    date_range_end: date = Field(..., description="End date in YYYY-MM-DD format")
    truck_id: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1)

    @field_validator("date_range_end")
    @classmethod
    def validate_date_range(cls, end: date, info: ValidationInfo):
        start = info.data.get("date_range_start")
        if start and end < start:
            raise ValueError(
                "date_range_end must be after or equal to date_range_start"
            )
        return end
