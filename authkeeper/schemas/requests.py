from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from authkeeper.schemas.masking import sensitive


class LoginIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)
    password: str = sensitive(min_length=1)


class RefreshTokenIn(BaseModel):
    refresh_token: str = sensitive(min_length=1)


class ForgotPasswordIn(BaseModel):
    email: Optional[EmailStr] = Field(default=None, max_length=255)


class ResetPasswordIn(BaseModel):
    code: str = sensitive(min_length=1, description="Reset handle from the email link")
    password: str = sensitive(min_length=1)


class ValidateCodeIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)
    code: str = sensitive(min_length=1, max_length=64)


class RefreshCodeIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)


class UserCreateIn(BaseModel):
    email: EmailStr = Field(..., description="The email of the user", max_length=255)
    username: Optional[str] = Field(default=None, max_length=255)
    password: str = sensitive(description="The password of the user", min_length=1)
    role: str = Field(default="USER", max_length=16)
