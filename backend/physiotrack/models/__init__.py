from physiotrack.models.base import Base
from physiotrack.models.patient import Patient
from physiotrack.models.visit import Visit
from physiotrack.models.payment import Payment, PaymentMethod, PaymentType
from physiotrack.models.inventory import InventoryCategory, InventoryItem, InventoryUsage

__all__ = [
    "Base",
    "Patient",
    "Visit",
    "Payment",
    "PaymentMethod",
    "PaymentType",
    "InventoryCategory",
    "InventoryItem",
    "InventoryUsage",
]
