"""Background job bookkeeping models."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from tastebuddy.database import Base


class JobRun(Base):
    """One execution of a scheduled job."""

    __tablename__ = "job_runs"

    id = Column(Integer, primary_key=True, index=True)
    job_name = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False)  # JobStatus values
    started_at = Column(DateTime(timezone=True), nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    summary = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)


class JobLease(Base):
    """Exclusivity marker held by a running job.

    A lease past its expires_at is considered abandoned and may be taken over.
    """

    __tablename__ = "job_leases"

    job_name = Column(String(100), primary_key=True)
    holder = Column(String(100), nullable=False)
    acquired_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
