"""
Pydantic schemas for coupon endpoints.
"""
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class CouponCreateRequest(BaseModel):
    """Request schema for creating a coupon (starts pending)."""
    code: str = Field(..., min_length=1, max_length=191, description="Coupon code; stored upper-case")
    name: str = Field(..., min_length=1, max_length=191, description="Display name")
    discount_percentage: Decimal = Field(..., description="Percentage off the plan price, 0-100")
    coupon_for: str = Field(..., description="Owner kind the coupon applies to: 'employee' or 'employer'")
    expiry_date: Optional[date] = Field(None, description="Last valid day; omit for no expiry")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "WELCOME20",
                "name": "Welcome discount",
                "discount_percentage": "20",
                "coupon_for": "employee",
                "expiry_date": "2026-12-31"
            }
        }


class CouponDecisionRequest(BaseModel):
    """Request schema for approving or rejecting a pending coupon."""
    status: Literal["approved", "rejected"] = Field(..., description="Decision")


class AssignUserItem(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email, mobile (employee) or contact (employer)")
    type: Literal["employee", "employer"] = Field(..., description="Owner kind of the user")


class AssignUsersRequest(BaseModel):
    """Request schema for batch-assigning users to an approved coupon."""
    users: List[AssignUserItem] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "users": [
                    {"identifier": "asha@example.com", "type": "employee"},
                    {"identifier": "9800000001", "type": "employee"}
                ]
            }
        }


class CouponValidateRequest(BaseModel):
    """Request schema for previewing a coupon against a plan; accepts `coupon_code` or `code`."""
    code: str = Field(..., alias="coupon_code", min_length=1, description="Coupon code (case-insensitive)")
    plan_id: int = Field(..., description="Plan to price")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "coupon_code": "WELCOME20",
                "plan_id": 2
            }
        }
