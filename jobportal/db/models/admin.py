from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base
from jobportal.db.models.enums import AdminRole
from jobportal.db.models.mixins import CredentialsMixin


class Admin(CredentialsMixin, Base):
    """
    Back-office principal.

    Staff may report to one manager through manager_id; managers act on
    their direct reports' coupons.
    """
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default=AdminRole.STAFF.value, index=True)
    manager_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    manager = relationship("Admin", remote_side=[id], backref="staff_members")

    def __repr__(self):
        return f"<Admin(id={self.id}, email='{self.email}', role='{self.role}')>"
