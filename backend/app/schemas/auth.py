from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    username: str = Field(default="", max_length=100)
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=256)
    confirm_password: str = Field(default="", max_length=256)


class RegisterResponse(BaseModel):
    ok: bool = True
    id: int
    username: str


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=256)


class AuthSessionInfo(BaseModel):
    ok: bool = True
    token: str
    expires_at: datetime
    username: str


class UserProfile(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime
    theme: str = "light"

    model_config = ConfigDict(from_attributes=True)


class ThemeUpdate(BaseModel):
    theme: str = Field(..., max_length=32)


class ThemeResponse(BaseModel):
    theme: str
    css_class: str
