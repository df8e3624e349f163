"""
Job postings, applications and contact views.

Only the columns the quota flows need are modelled here.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(Integer, ForeignKey("employers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    salary = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    employer = relationship("Employer", backref="jobs")


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="applied")
    applied_at = Column(DateTime, nullable=False)

    job = relationship("Job", backref="applications")
    employee = relationship("Employee")

    __table_args__ = (
        UniqueConstraint("job_id", "employee_id", name="uq_job_application"),
    )


class ContactView(Base):
    """
    One unlocked contact. viewer_type/viewer_id is the principal who paid the
    view, target_id the employer (for employee viewers) or the employee (for
    employer viewers). A repeat view of the same target is free.
    """
    __tablename__ = "contact_views"

    id = Column(Integer, primary_key=True, index=True)
    viewer_type = Column(String(20), nullable=False)
    viewer_id = Column(Integer, nullable=False, index=True)
    target_id = Column(Integer, nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    application_id = Column(Integer, ForeignKey("job_applications.id", ondelete="SET NULL"), nullable=True)
    viewed_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("viewer_type", "viewer_id", "target_id", name="uq_contact_view"),
    )
