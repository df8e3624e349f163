"""
Column groups shared by the principal tables.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import declared_attr

from jobportal.core.security import hash_password


class CredentialsMixin:
    """
    Password storage for a principal.

    Assigning `password` (including via the constructor) hashes immediately;
    the plaintext is never kept on the instance.
    """
    password_hash = Column(String, nullable=False)

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, value: str) -> None:
        self.password_hash = hash_password(value)


class PlanHolderMixin:
    """Current-plan pointer kept on employees and employers."""

    @declared_attr
    def plan_id(cls):
        return Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True, index=True)

    plan_started_at = Column(DateTime, nullable=True)
    plan_expires_at = Column(DateTime, nullable=True)
    plan_is_active = Column(Boolean, default=False, nullable=False)
