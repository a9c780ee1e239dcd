# user.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from jobboard.models.user import UserType
from jobboard.schemas.profile import ProfileRead


def _validate_email_like(v: str) -> str:
    value = (v or "").strip().lower()
    if not value:
        return value
    if "@" not in value:
        raise ValueError("email must contain '@'")
    left, right = value.split("@", 1)
    if not left or not right:
        raise ValueError("email must have text before and after '@'")
    return value


class UserCreate(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    address: Optional[str] = None
    profile_headline: Optional[str] = None
    user_type: UserType = UserType.APPLICANT

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _validate_email_like(v)


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _validate_email_like(v)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    profile_headline: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _validate_email_like(v)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    user_type: UserType

    model_config = ConfigDict(from_attributes=True)


class UserRead(UserSummary):
    address: Optional[str] = None
    profile_headline: Optional[str] = None
    created_at: Optional[datetime] = None


class ApplicantRead(UserRead):
    profile: Optional[ProfileRead] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
