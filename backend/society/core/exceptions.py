"""
Custom Exceptions for the Society Management backend
====================================================

Services raise these instead of HTTPException so that the same rules hold
whether an operation is called from a route, a script or a test. The API
layer turns them into JSON responses using ``status_code``.

Usage:
    from society.core.exceptions import FlatNotFoundError

    if not flat:
        raise FlatNotFoundError(f"{wing}-{flat_no}")
"""

from typing import Optional, Any, Dict


class SocietyError(Exception):
    """Base exception for all Society Management errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(SocietyError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class MissingFieldsError(ValidationError):
    """One or more required fields were not supplied"""

    def __init__(self, fields: list):
        super().__init__(f"{', '.join(fields)} are required")
        self.code = "MISSING_FIELDS"
        self.details = {"fields": fields}


class MissingUnitError(ValidationError):
    """Resident registration without wing / flat number"""

    def __init__(self):
        super().__init__("Wing and Flat No are required for residents")
        self.code = "MISSING_UNIT"


class InvalidVerificationCodeError(ValidationError):
    """Verification code does not match the stored one"""

    def __init__(self):
        super().__init__("Invalid verification code", field="code")
        self.code = "INVALID_VERIFICATION_CODE"


class InvalidRoleError(ValidationError):
    """Target user has the wrong role for the operation"""

    def __init__(self, message: str = "Can only assign residents to flats"):
        super().__init__(message)
        self.code = "INVALID_ROLE"


class InvalidStatusTransitionError(ValidationError):
    """Flat occupancy status change that the state machine does not allow"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change flat status from '{current}' to '{requested}'. "
            "Assign a resident to occupy a vacant flat."
        )
        self.code = "INVALID_STATUS_TRANSITION"
        self.details = {"current": current, "requested": requested}


class NoFlatLinkedError(ValidationError):
    """Resident account is not linked to any flat"""

    def __init__(self):
        super().__init__("Flat information not found. Please contact admin to update your flat details.")
        self.code = "NO_FLAT_LINKED"


class UnknownUnitError(ValidationError):
    """Registration names a flat that is not in the registry"""

    def __init__(self, flat_ref: str):
        super().__init__(f"Flat {flat_ref} not found. Please contact admin to add this flat first.")
        self.code = "FLAT_NOT_FOUND"
        self.details = {"flat": flat_ref}


class NoOccupiedFlatsError(ValidationError):
    """Bulk generation found nothing to bill"""

    def __init__(self):
        super().__init__("No occupied flats found. Please add flats and assign residents first.")
        self.code = "NO_OCCUPIED_FLATS"


# ============================================
# Conflict Errors (uniqueness, 400-type)
# ============================================

class ConflictError(SocietyError):
    """Operation violates a uniqueness or state rule"""

    status_code = 400

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class DuplicateEmailError(ConflictError):
    def __init__(self, email: str):
        super().__init__("User already exists", code="EMAIL_ALREADY_REGISTERED", details={"email": email})


class AdminExistsError(ConflictError):
    def __init__(self):
        super().__init__("Admin user already exists. Only one admin is allowed.", code="ADMIN_EXISTS")


class UnitOccupiedError(ConflictError):
    def __init__(self, wing: str, flat_no: str):
        super().__init__(
            f"Flat {wing}-{flat_no} is already occupied by another resident.",
            code="UNIT_OCCUPIED",
            details={"wing": wing, "flat_no": flat_no}
        )


class FlatExistsError(ConflictError):
    def __init__(self, wing: str, flat_no: str):
        super().__init__(
            f"Flat {wing}-{flat_no} already exists",
            code="FLAT_EXISTS",
            details={"wing": wing, "flat_no": flat_no}
        )


class DuplicatePeriodError(ConflictError):
    def __init__(self, wing: str, flat_no: str, month: str, year: int):
        super().__init__(
            "Maintenance bill already exists for this flat and period",
            code="DUPLICATE_PERIOD",
            details={"wing": wing, "flat_no": flat_no, "month": month, "year": year}
        )


class BillAlreadyPaidError(ConflictError):
    def __init__(self, bill_id: str):
        super().__init__("Maintenance bill is already paid", code="BILL_ALREADY_PAID", details={"bill_id": bill_id})


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(SocietyError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid credentials")
        self.code = "INVALID_CREDENTIALS"


class EmailUnverifiedError(AuthenticationError):
    def __init__(self):
        super().__init__("Please verify your email first")
        self.code = "EMAIL_UNVERIFIED"


class AccountDeactivatedError(AuthenticationError):
    def __init__(self):
        super().__init__("Your account has been deactivated. Please contact admin.")
        self.code = "ACCOUNT_DEACTIVATED"


class AuthorizationError(SocietyError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class AccessDeniedError(AuthorizationError):
    def __init__(self, message: str = "Access denied - you can only pay bills for your flat"):
        super().__init__(message)
        self.code = "ACCESS_DENIED"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(SocietyError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_ref: str):
        super().__init__("User", user_ref, message="User not found")


class FlatNotFoundError(ResourceNotFoundError):
    def __init__(self, flat_ref: str):
        super().__init__(
            "Flat", flat_ref,
            message=f"Flat {flat_ref} not found. Please contact admin to add this flat first."
        )


class BillNotFoundError(ResourceNotFoundError):
    def __init__(self, bill_id: str):
        super().__init__("Bill", bill_id, message="Maintenance bill not found")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: SocietyError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "message": error.message,
        "error": error.to_dict()
    }
