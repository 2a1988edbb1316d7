"""
Auth API schemas (request/response models).

Request fields are optional so the service can report missing values with
the same messages the mobile clients already display.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=256)
    password_confirmation: str | None = Field(default=None, max_length=256)
    device_name: str | None = Field(default=None, max_length=200)


class LoginRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=256)
    device_name: str | None = Field(default=None, max_length=200)


class UserResponse(BaseModel):
    id: int
    email: str


class AuthResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserResponse
