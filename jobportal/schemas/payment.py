"""
Pydantic schemas for payment endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class SubscribeRequest(BaseModel):
    """Request schema for buying a plan, optionally with a coupon."""
    plan_id: int = Field(..., description="Plan to subscribe to")
    coupon_code: Optional[str] = Field(None, max_length=191, description="Coupon code (optional)")
    payment_method: str = Field(..., min_length=1, max_length=50, description="Payment method label, e.g. 'upi'")

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": 2,
                "coupon_code": "WELCOME20",
                "payment_method": "upi"
            }
        }


class VerifyPaymentRequest(BaseModel):
    """Request schema for confirming a payment with the gateway transaction id."""
    payment_id: int = Field(..., description="Payment to confirm")
    transaction_id: str = Field(..., min_length=1, max_length=100, description="Gateway transaction id")
