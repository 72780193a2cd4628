"""Pydantic schemas for user account requests and responses."""
from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

MAX_USERNAME_LEN = 50
MAX_EMAIL_LEN = 100
MIN_PASSWORD_LEN = 6
MAX_PASSWORD_LEN = 255  # column width


def _email_length_guard(v: str) -> str:
    if len(v) > MAX_EMAIL_LEN:
        raise ValueError(f"email must be <= {MAX_EMAIL_LEN} characters")
    return v


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=MAX_USERNAME_LEN)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        return _email_length_guard(v)


class UserUpdate(BaseModel):
    username: str = Field(..., min_length=1, max_length=MAX_USERNAME_LEN)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        return _email_length_guard(v)


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime


class UserEnvelope(BaseModel):
    user: UserOut


class UserMessageEnvelope(BaseModel):
    message: str
    user: UserOut


class UserListEnvelope(BaseModel):
    users: List[UserOut]


class MessageResponse(BaseModel):
    message: str
