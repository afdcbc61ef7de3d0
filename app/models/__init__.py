# app/models/__init__.py
# Import every model so Base.metadata knows all tables (create_all, Alembic).
from app.models.base import Base
from app.models.inventory import InventoryTransaction, TransactionType
from app.models.medicine import Medicine
from app.models.patient import Gender, Patient
from app.models.payment import Payment, PaymentMethod
from app.models.prescription import Prescription, PrescriptionItem, PrescriptionStatus
from app.models.user import RoleName, User
from app.models.visit import Visit

__all__ = [
    "Base",
    "Gender",
    "InventoryTransaction",
    "Medicine",
    "Patient",
    "Payment",
    "PaymentMethod",
    "Prescription",
    "PrescriptionItem",
    "PrescriptionStatus",
    "RoleName",
    "TransactionType",
    "User",
    "Visit",
]
