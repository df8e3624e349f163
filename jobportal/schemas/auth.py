"""
Pydantic schemas for authentication endpoints.
"""
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


def _check_password(v: str) -> str:
    password_bytes = v.encode("utf-8")
    if len(password_bytes) > 72:
        raise ValueError("Password too long (bcrypt limit 72 bytes)")
    if len(password_bytes) < 8:
        raise ValueError("Password must be at least 8 characters")
    return v


class EmployeeRegisterRequest(BaseModel):
    """Request schema for job seeker signup."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    mobile: str = Field(..., min_length=6, max_length=20)
    password: str = Field(..., description="Password (min 8 characters)")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        return _check_password(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Asha Rao",
                "email": "asha@example.com",
                "mobile": "9800000001",
                "password": "SecurePass123"
            }
        }


class EmployerRegisterRequest(BaseModel):
    """Request schema for employer signup."""
    company_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    contact: str = Field(..., min_length=6, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    password: str = Field(..., description="Password (min 8 characters)")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    """Request schema for login; `identifier` is an email, or a phone for employees and employers."""
    kind: Literal["employee", "employer", "admin"] = Field(..., description="Principal kind")
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "employee",
                "identifier": "asha@example.com",
                "password": "SecurePass123"
            }
        }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    kind: str
    role: Optional[str] = None
