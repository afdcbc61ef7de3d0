# app/models/inventory.py
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, enum_values
from app.models.medicine import Medicine
from app.models.user import User
from app.utils.datetime_utils import utc_now


class TransactionType(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    ADJUSTMENT = "adjustment"


class InventoryTransaction(Base):
    """
    Append-only ledger of stock movements.

    `quantity` is positive for additions and subtractions; for adjustments
    it is the signed difference between the new and the previous level.
    """

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    medicine_id: Mapped[int] = mapped_column(
        ForeignKey("medicines.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType, name="inventory_transaction_type_enum", values_callable=enum_values),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    # e.g. reference_type="prescription", reference_id=<prescription id>
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    performed_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )

    medicine: Mapped["Medicine"] = relationship("Medicine")
    performer: Mapped["User"] = relationship("User")

    @property
    def medicine_name(self) -> str | None:
        return self.medicine.name if self.medicine is not None else None
