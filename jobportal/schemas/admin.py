"""
Pydantic schemas for back-office user management.
"""
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class AdminCreateRequest(BaseModel):
    """Request schema for creating an admin, manager or staff account."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Literal["super_admin", "manager", "staff"]
    manager_id: Optional[int] = Field(None, description="Manager for a staff account")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v


class AssignManagerRequest(BaseModel):
    """manager_id null unassigns the staff member."""
    manager_id: Optional[int] = None


class AdminPlanUpgradeRequest(BaseModel):
    """Request schema for moving a user onto a plan without charging them."""
    plan_id: int
    payment_id: Optional[int] = None


class AdminUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Literal["super_admin", "manager", "staff"]] = None
    manager_id: Optional[int] = Field(None, description="Manager for a staff account; null unassigns")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v
