from .app import GetAppResponse
from .auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResult,
    LoginStatus,
    PatchOperation,
    PersistedSession,
    PostUserRequest,
    TokenUserResponse,
    User,
)

__all__ = [
    "ChangePasswordRequest",
    "GetAppResponse",
    "LoginRequest",
    "LoginResult",
    "LoginStatus",
    "PatchOperation",
    "PersistedSession",
    "PostUserRequest",
    "TokenUserResponse",
    "User",
]
