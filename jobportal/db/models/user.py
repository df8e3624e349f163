from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base
from jobportal.db.models.enums import UserType
from jobportal.db.models.mixins import CredentialsMixin, PlanHolderMixin


class Employee(CredentialsMixin, PlanHolderMixin, Base):
    """Job seeker. Looked up by email or mobile."""
    __tablename__ = "employees"

    user_type = UserType.EMPLOYEE.value

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    mobile = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("Plan", foreign_keys="Employee.plan_id")

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def phone(self) -> str:
        return self.mobile


class Employer(CredentialsMixin, PlanHolderMixin, Base):
    """Hiring company. Looked up by email or contact number."""
    __tablename__ = "employers"

    user_type = UserType.EMPLOYER.value

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    contact = Column(String, unique=True, index=True, nullable=False)
    address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("Plan", foreign_keys="Employer.plan_id")

    @property
    def display_name(self) -> str:
        return self.company_name

    @property
    def phone(self) -> str:
        return self.contact


USER_MODELS = {
    UserType.EMPLOYEE: Employee,
    UserType.EMPLOYER: Employer,
}
