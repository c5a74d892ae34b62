from society.schemas.auth import (
    AdminIdentity,
    ResidentIdentity,
    Identity,
    identity_for,
    RegisterRequest,
    VerifyEmailRequest,
    ResendVerificationRequest,
    LoginRequest,
    RegisterResponse,
    MessageResponse,
    FlatSummary,
    LoginUser,
    LoginResponse,
    UserResponse,
)
from society.schemas.flat import (
    FlatCreate,
    FlatUpdate,
    FlatResponse,
    AssignResidentRequest,
    AssignResidentResponse,
    UserStatusUpdate,
    AvailableResident,
)
from society.schemas.maintenance import (
    BillCreate,
    BulkCreateRequest,
    BulkGenerateRequest,
    PayRequest,
    MarkOverdueRequest,
    BillResponse,
    BulkResult,
    MarkOverdueResult,
    BillStats,
    DashboardStats,
)
