# profile.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileRead(BaseModel):
    id: int
    applicant_id: int
    resume_file_address: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: Optional[str] = None
    education: Optional[str] = None
    experience: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def _entry_names(v: Any) -> list[str]:
    # Parser returns entries as {"name": ...}; plain strings are accepted too.
    if v is None:
        return []
    if not isinstance(v, list):
        v = [v]
    names: list[str] = []
    for item in v:
        if isinstance(item, dict):
            item = item.get("name")
        if item is None:
            continue
        text = str(item).strip()
        if text:
            names.append(text)
    return names


class ParsedResume(BaseModel):
    """Structured fields returned by the resume parser."""

    name: str = ""
    email: str = ""
    phone: str = ""
    skills: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("skills", "education", "experience", mode="before")
    @classmethod
    def _coerce_entries(cls, v: Any) -> list[str]:
        return _entry_names(v)
