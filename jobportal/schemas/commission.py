"""
Pydantic schemas for commission endpoints.
"""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class ManualCommissionRequest(BaseModel):
    """Request schema for crediting a staff member by hand."""
    staff_id: int = Field(..., description="Admin receiving the credit")
    amount: Decimal = Field(..., description="Amount to credit, >= 0")
    payment_id: Optional[int] = Field(None, description="Payment the credit relates to (optional)")

    class Config:
        json_schema_extra = {
            "example": {
                "staff_id": 3,
                "amount": "250.00",
                "payment_id": None
            }
        }
