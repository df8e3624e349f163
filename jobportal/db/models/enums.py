"""
Discriminants shared across models.
"""
import enum


class UserType(str, enum.Enum):
    """The two subscriber principal kinds."""
    EMPLOYEE = "employee"
    EMPLOYER = "employer"


class AdminRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    MANAGER = "manager"
    STAFF = "staff"
