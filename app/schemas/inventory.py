# app/schemas/inventory.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.inventory import TransactionType
from app.schemas.common import OptStr50, Str500


class StockChange(BaseModel):
    """
    One stock movement.

    For ADDITION and SUBTRACTION `quantity` is the amount moved (> 0).
    For ADJUSTMENT it is the target stock level (>= 0).
    """

    medicine_id: int = Field(gt=0)
    transaction_type: TransactionType
    quantity: int
    reason: Str500

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_quantity_for_type(self) -> "StockChange":
        if self.transaction_type == TransactionType.ADJUSTMENT:
            if self.quantity < 0:
                raise ValueError("Target stock level for an adjustment cannot be negative")
        elif self.quantity <= 0:
            raise ValueError(f"Quantity for {self.transaction_type.value} must be greater than 0")
        return self


class InventoryTransactionCreate(StockChange):
    reference_id: int | None = None
    reference_type: OptStr50 = None
    performed_by: int = Field(gt=0)


class StockAdjustRequest(BaseModel):
    medicine_id: int = Field(gt=0)
    new_stock: int = Field(ge=0)
    reason: Str500
    performed_by: int = Field(gt=0)

    model_config = ConfigDict(extra="forbid")


class BulkStockUpdateRequest(BaseModel):
    performed_by: int = Field(gt=0)
    updates: list[StockChange]

    model_config = ConfigDict(extra="forbid")


class InventoryTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    medicine_id: int
    medicine_name: str | None = None
    transaction_type: TransactionType
    quantity: int
    reason: str
    reference_id: int | None
    reference_type: str | None
    performed_by: int
    created_at: datetime
