"""
Pydantic models for user accounts and the password lifecycle.

Request fields are optional at the schema level so that missing values
reach the service layer, which answers with a descriptive 400 message
instead of a generic validation error.
"""

from typing import Optional

from pydantic import Field

from . import CamelModel


class UserRead(CamelModel):
    """Public view of a user; never includes password material."""

    id: int
    full_name: str = Field(..., examples=["Ada Obi"])
    email: str = Field(..., examples=["ada@example.com"])


class RegisterRequest(CamelModel):
    full_name: Optional[str] = Field(None, examples=["Ada Obi"])
    email: Optional[str] = Field(None, examples=["ada@example.com"])
    password: Optional[str] = Field(None, examples=["Str0ng.Pass"])


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class RegisterResponse(CamelModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserRead


class LoginResponse(CamelModel):
    success: bool = True
    token: str
    user: UserRead
