# job.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from jobboard.schemas.user import UserSummary


class JobCreate(BaseModel):
    title: str = ""
    description: str = ""
    company_name: str = ""
    posted_on: Optional[datetime] = None


class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    company_name: Optional[str] = None


class JobFilters(BaseModel):
    title: Optional[str] = None
    company_name: Optional[str] = None
    posted_after: Optional[datetime] = None
    page: int = Field(default=1)
    page_size: int = Field(default=10)


class JobRead(BaseModel):
    id: int
    title: str
    description: str
    company_name: str
    posted_on: Optional[datetime] = None
    total_applications: int
    posted_by: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class JobWithApplicants(JobRead):
    applicants: list[UserSummary] = Field(default_factory=list)


class JobApplicationRead(BaseModel):
    job_id: int
    user_id: int
    total_applications: int
    applied_at: Optional[datetime] = None
