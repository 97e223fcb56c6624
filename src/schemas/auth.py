"""Authentication Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    This model represents the authenticated user for the current request.
    It is populated by the auth middleware from the validated JWT.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role (e.g., 'user', 'admin')")


class TokenPayload(BaseModel):
    """JWT token payload structure for Supabase tokens."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    app_role: str | None = Field(default=None, description="Role granted in app_metadata")
    exp: int = Field(description="Expiration timestamp")
    iat: int = Field(description="Issued at timestamp")

    def to_user_context(self) -> UserContext:
        """Convert token payload to user context.

        The app_metadata role takes precedence over the database role claim.
        """
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            role=self.app_role or self.role,
        )
