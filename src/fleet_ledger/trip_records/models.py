from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import TIMESTAMP, Date, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.fleet_ledger.database.database import Base


class TripRecordModel(Base):
    __tablename__ = "trip_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    production_date: Mapped[date] = mapped_column(Date, nullable=False)
    truck_id: Mapped[str] = mapped_column(String(36), nullable=False)
    driver_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    material: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    challan_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    party_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    loading_gross_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    loading_tare_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    loading_net_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    unloading_gross_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    unloading_tare_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    unloading_net_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    flat_fee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    per_trip_fee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    agent_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "ix_trip_records_batch",
            "production_date",
            "truck_id",
            "transaction_type",
        ),
        Index("ix_trip_records_truck_date", "truck_id", "production_date"),
    )
