from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class User(BaseModel):
    model_config = {"populate_by_name": True}

    id: str = Field(..., description="Stable user ID.")
    username: str = Field(..., description="Login name, also used in user URLs.")
    display_name: str = Field(
        "",
        validation_alias=AliasChoices("display_name", "displayName"),
        serialization_alias="displayName",
        description="Human readable name shown in the UI.",
    )


class LoginRequest(BaseModel):
    username: str = Field(...)
    password: str = Field(...)


class TokenUserResponse(BaseModel):
    """Response of `/auth/login` and `/auth/refresh`."""

    model_config = {"populate_by_name": True}

    access_token: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("access_token", "accessToken"),
        serialization_alias="accessToken",
    )
    user: User = Field(...)


class PersistedSession(BaseModel):
    """Session fields that survive a restart. The refresh lock is never stored."""

    model_config = {"populate_by_name": True}

    access_token: str = Field(
        "",
        validation_alias=AliasChoices("access_token", "accessToken"),
        serialization_alias="accessToken",
    )
    user: Optional[User] = Field(None)


class PatchOperation(BaseModel):
    op: str = Field("replace")
    path: str = Field(...)
    value: Optional[Any] = Field(None)
    from_: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("from_", "from"),
        serialization_alias="from",
    )


class ChangePasswordRequest(BaseModel):
    model_config = {"populate_by_name": True}

    current_password: str = Field(
        ...,
        validation_alias=AliasChoices("current_password", "currentPassword"),
        serialization_alias="currentPassword",
    )
    new_password: str = Field(
        ...,
        validation_alias=AliasChoices("new_password", "newPassword"),
        serialization_alias="newPassword",
    )


class PostUserRequest(BaseModel):
    model_config = {"populate_by_name": True}

    username: str = Field(...)
    password: str = Field(...)
    display_name: str = Field(
        ...,
        validation_alias=AliasChoices("display_name", "displayName"),
        serialization_alias="displayName",
    )


class LoginStatus(str, Enum):
    SUCCESS = "SUCCESS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    RATE_LIMITED = "RATE_LIMITED"


class LoginResult(BaseModel):
    """Outcome of a login attempt.

    Wrong credentials and rate limiting are expected outcomes of a login form,
    so they are returned instead of raised.
    """

    status: LoginStatus = Field(...)
    retry_after: Optional[int] = Field(
        None,
        description="Seconds to wait before the next attempt. Only set when rate limited.",
    )
    user: Optional[User] = Field(None)

    @property
    def ok(self) -> bool:
        return self.status == LoginStatus.SUCCESS
