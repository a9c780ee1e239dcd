# job.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from jobboard.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=False)
    company_name = Column(String(255), index=True, nullable=False, default="")
    posted_on = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    # Kept equal to the number of job_applications rows for this job, in the same transaction.
    total_applications = Column(Integer, nullable=False, default=0)
    posted_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    posted_by = relationship("User")
    applicants = relationship(
        "User",
        secondary="job_applications",
        order_by="JobApplication.id",
        viewonly=True,
    )


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_job_applications_job_id_user_id"),
    )
