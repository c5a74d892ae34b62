# Re-export all models for convenient imports
from society.models.user import User, UserRole
from society.models.flat import Flat, FlatStatus, OCCUPIED_STATUSES
from society.models.maintenance import MaintenanceBill, BillStatus, BillingMonth

__all__ = [
    # Identity
    "User",
    "UserRole",
    # Flats
    "Flat",
    "FlatStatus",
    "OCCUPIED_STATUSES",
    # Billing
    "MaintenanceBill",
    "BillStatus",
    "BillingMonth",
]
