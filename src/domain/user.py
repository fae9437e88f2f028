"""User and session domain models."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field


# Constants for validation
MAX_NAME_LENGTH = 50
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _validate_name(v: str) -> str:
    """Trim the display name and bound its length."""
    v = v.strip()
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f"Name too long (max {MAX_NAME_LENGTH} characters)")
    return v


DisplayName = Annotated[str, AfterValidator(_validate_name)]
Email = Annotated[str, Field(pattern=EMAIL_PATTERN, description="Login email")]


class User(BaseModel):
    """Authenticated user as exposed by the API."""

    id: str = Field(..., description="Unique user ID from PocketBase")
    email: str = Field(default="", description="Login email")
    name: str = Field(default="", description="Display name of the user")
    email_notification_enabled: bool = Field(default=True, description="Receive overdue digest emails")

    @property
    def display_name(self) -> str:
        """Profile name, falling back to the local part of the email."""
        return self.name or self.email.split("@")[0]


class Session(BaseModel):
    """Bearer token issued by the auth backend plus the signed-in user."""

    token: str
    user: User


class SignUpRequest(BaseModel):
    """Registration payload."""

    email: Email
    password: str = Field(..., description="Plain password, hashed by the auth backend")
    name: DisplayName = Field(default="", description="Optional display name")


class SignInRequest(BaseModel):
    """Login payload."""

    email: Email
    password: str


class PasswordResetRequest(BaseModel):
    """Password reset email request."""

    email: Email


class ProfileUpdate(BaseModel):
    """Partial profile update; only explicitly set fields are written."""

    name: DisplayName | None = None
    email_notification_enabled: bool | None = None
    password: str | None = None
    old_password: str | None = Field(default=None, description="Current password, required to change it")
