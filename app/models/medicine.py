# app/models/medicine.py
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class Medicine(Base):
    """
    A medicine held in the pharmacy's inventory.

    `current_stock` is only changed by the inventory and dispensing services,
    each of which appends a row to `inventory_transactions` in the same
    database transaction.
    """

    __tablename__ = "medicines"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_medicines_current_stock_non_negative"),
        CheckConstraint("minimum_stock_level >= 0", name="ck_medicines_minimum_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    current_stock: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    minimum_stock_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )

    supplier_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    storage_conditions: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requires_prescription: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    @property
    def shortage(self) -> int:
        return max(0, (self.minimum_stock_level or 0) - (self.current_stock or 0))

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) < (self.minimum_stock_level or 0)
