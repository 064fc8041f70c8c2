"""Authentication schemas."""

from pydantic import BaseModel, Field

from api.schemas.users import UserResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Access token for the Authorization header. The refresh token is only set as a cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token lifetime in seconds")
    user: UserResponse
