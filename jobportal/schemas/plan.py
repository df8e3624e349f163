"""
Pydantic schemas for plan registry endpoints.
"""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class PlanBase(BaseModel):
    description: Optional[str] = None
    is_default: bool = False
    jobs_can_apply: int = Field(5, ge=-1, description="-1 for unlimited")
    contact_details_can_view: int = Field(3, ge=-1, description="-1 for unlimited")
    whatsapp_alerts: bool = False
    sms_alerts: bool = False
    employer_can_view_contact_free: bool = False
    jobs_can_post: int = Field(3, ge=-1, description="-1 for unlimited")
    employee_contact_details_can_view: int = Field(3, ge=-1, description="-1 for unlimited")
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=1, description="Overrides the global commission rate")


class PlanCreateRequest(PlanBase):
    """Request schema for creating a plan."""
    name: str = Field(..., min_length=1, max_length=255)
    owner_type: str = Field(..., description="'employee' or 'employer'")
    price: Decimal = Field(..., description="Plan price, >= 0")
    validity_days: int = Field(..., description="Days a subscription stays active, >= 1")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Pro Seeker",
                "owner_type": "employee",
                "price": "499.00",
                "validity_days": 30,
                "jobs_can_apply": -1,
                "contact_details_can_view": 50
            }
        }


class PlanUpdateRequest(BaseModel):
    """Request schema for a partial plan update; omitted fields are left as is."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    validity_days: Optional[int] = None
    is_default: Optional[bool] = None
    jobs_can_apply: Optional[int] = Field(None, ge=-1)
    contact_details_can_view: Optional[int] = Field(None, ge=-1)
    whatsapp_alerts: Optional[bool] = None
    sms_alerts: Optional[bool] = None
    employer_can_view_contact_free: Optional[bool] = None
    jobs_can_post: Optional[int] = Field(None, ge=-1)
    employee_contact_details_can_view: Optional[int] = Field(None, ge=-1)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=1)


class PlanFeatureRequest(BaseModel):
    feature_name: str = Field(..., min_length=1, max_length=255)
    feature_value: str = Field(..., min_length=1, max_length=255)
