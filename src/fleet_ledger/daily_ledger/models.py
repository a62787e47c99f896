from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    TIMESTAMP,
    Date,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.fleet_ledger.database.database import Base


class BatchAdjustmentModel(Base):
    __tablename__ = "batch_adjustments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    production_date: Mapped[date] = mapped_column(Date, nullable=False)
    truck_id: Mapped[str] = mapped_column(String(36), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    trip_count_adjustment: Mapped[int] = mapped_column(Integer, default=0)
    trip_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    diesel_stock_adjustment: Mapped[float] = mapped_column(Float, default=0.0)
    diesel_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    diesel_other_adjustment: Mapped[float] = mapped_column(Float, default=0.0)
    other_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "production_date",
            "truck_id",
            "transaction_type",
            name="uq_batch_adjustments_key",
        ),
    )
