"""Request and response models for password reset and email verification."""

from pydantic import BaseModel, EmailStr, Field


class ForgotPasswordRequest(BaseModel):
    email: EmailStr = Field(description="Account email address")


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1, description="Token from the reset link")
    password: str = Field(min_length=6, description="New password")


class ResendVerificationRequest(BaseModel):
    email: EmailStr = Field(description="Account email address")
