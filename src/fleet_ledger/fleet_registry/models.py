from datetime import date
from typing import Optional

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.fleet_ledger.database.database import Base


class TruckModel(Base):
    __tablename__ = "trucks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    plate_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    fleet_category: Mapped[str] = mapped_column(String(10), nullable=False)
    current_odometer: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")


class DriverModel(Base):
    __tablename__ = "drivers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ON Duty")


class FuelStationModel(Base):
    __tablename__ = "fuel_stations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


class DailyOdometerSnapshotModel(Base):
    __tablename__ = "daily_odometer_snapshots"

    truck_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[date] = mapped_column(Date, primary_key=True)
    opening_odometer: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    closing_odometer: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
