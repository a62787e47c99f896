from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FleetCategory(str, Enum):
    MINING = "MINING"
    COAL = "COAL"


class TruckStatus(str, Enum):
    ACTIVE = "ACTIVE"
    MAINTENANCE = "MAINTENANCE"
    IDLE = "IDLE"
    BREAKDOWN = "BREAKDOWN"


class Truck(BaseModel):
    id: str
    plate_number: str
    fleet_category: FleetCategory
    current_odometer: int = Field(0, ge=0)
    status: TruckStatus = TruckStatus.ACTIVE

    model_config = ConfigDict(from_attributes=True)


class Driver(BaseModel):
    id: str
    name: str
    status: str = "ON Duty"

    model_config = ConfigDict(from_attributes=True)


class FuelStation(BaseModel):
    id: str
    name: str
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DailyOdometerSnapshot(BaseModel):
    truck_id: str
    date: date
    opening_odometer: Optional[int] = None
    closing_odometer: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
