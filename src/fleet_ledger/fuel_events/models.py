from datetime import date, datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Date, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.fleet_ledger.database.database import Base


class FuelEventModel(Base):
    __tablename__ = "fuel_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    truck_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    driver_id: Mapped[str] = mapped_column(String(36), nullable=False)
    station_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    fueling_date: Mapped[date] = mapped_column(Date, nullable=False)
    attribution_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_mode: Mapped[str] = mapped_column(String(10), nullable=False)
    odometer: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_odometer: Mapped[int] = mapped_column(Integer, nullable=False)
    liters: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(12), nullable=False)
    agent_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_fuel_events_truck_fueling_date", "truck_id", "fueling_date"),
        Index("ix_fuel_events_truck_attribution_date", "truck_id", "attribution_date"),
    )
