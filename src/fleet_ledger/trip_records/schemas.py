from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    DISPATCH = "DISPATCH"
    PURCHASE = "PURCHASE"


class ShortageStatus(str, Enum):
    LOSS = "LOSS"
    GAIN_OR_STABLE = "GAIN_OR_STABLE"


class BatchKey(BaseModel):
    """Trip records sharing a production date, truck and transaction type"""

    production_date: date
    truck_id: str
    transaction_type: TransactionType

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return (
            f"{self.truck_id}/{self.production_date.isoformat()}/"
            f"{self.transaction_type.value}"
        )


class TripRecordBase(BaseModel):
    transaction_type: TransactionType
    production_date: date
    truck_id: str = Field(..., min_length=1)
    driver_id: Optional[str] = None
    material: Optional[str] = None
    challan_no: Optional[str] = None
    party_name: Optional[str] = None
    loading_gross_weight: Optional[Decimal] = None
    loading_tare_weight: Optional[Decimal] = None
    loading_net_weight: Optional[Decimal] = None
    unloading_gross_weight: Optional[Decimal] = None
    unloading_tare_weight: Optional[Decimal] = None
    unloading_net_weight: Optional[Decimal] = None
    remarks: Optional[str] = None

    @property
    def batch_key(self) -> BatchKey:
        return BatchKey(
            production_date=self.production_date,
            truck_id=self.truck_id,
            transaction_type=self.transaction_type,
        )


class TripRecordCreate(TripRecordBase):
    pass


class TripRecordUpdate(BaseModel):
    """Partial edit; changing date, truck or type moves the record to another batch"""

    transaction_type: Optional[TransactionType] = None
    production_date: Optional[date] = None
    truck_id: Optional[str] = None
    driver_id: Optional[str] = None
    material: Optional[str] = None
    challan_no: Optional[str] = None
    party_name: Optional[str] = None
    loading_gross_weight: Optional[Decimal] = None
    loading_tare_weight: Optional[Decimal] = None
    loading_net_weight: Optional[Decimal] = None
    unloading_gross_weight: Optional[Decimal] = None
    unloading_tare_weight: Optional[Decimal] = None
    unloading_net_weight: Optional[Decimal] = None
    remarks: Optional[str] = None

    # The batch key cannot be nulled, only moved
    KEY_FIELDS: ClassVar[FrozenSet[str]] = frozenset(
        {"transaction_type", "production_date", "truck_id"}
    )

    def changes(self) -> Dict[str, Any]:
        sent = self.model_dump(exclude_unset=True)
        return {
            k: v for k, v in sent.items() if v is not None or k not in self.KEY_FIELDS
        }


class TripRecord(TripRecordBase):
    id: str
    flat_fee: int = 0
    per_trip_fee: int = 0
    agent_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TripRecordView(TripRecord):
    """Trip record annotated with the figures derived on read"""

    effective_net_weight: Decimal = Decimal("0")
    shortage: Optional[Decimal] = None
    shortage_status: Optional[ShortageStatus] = None
