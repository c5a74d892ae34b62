from society.services.notifier import notifier
from society.services.email_service import email_service
from society.services.occupancy_service import occupancy_service
from society.services.auth_service import auth_service
from society.services.billing_service import billing_service

__all__ = [
    "notifier",
    "email_service",
    "occupancy_service",
    "auth_service",
    "billing_service",
]
