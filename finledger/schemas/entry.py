"""
Income/expense Pydantic schemas for request/response validation
"""
import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


class EntryCreate(BaseModel):
    """Schema for adding an income or expense"""
    category: str = Field(..., max_length=100, examples=["salary"])
    amount: Decimal = Field(..., description="Positive amount", examples=[1000])
    # validated by the ledger engine
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)", examples=["2024-01-01"])
    description: Optional[str] = Field(None, max_length=500)


class EntryCreated(BaseModel):
    message: str
    id: int


class EntryResponse(BaseModel):
    """Schema for API response"""
    id: int
    category: str
    amount: Decimal
    date: dt.date
    description: str = ""

    model_config = {"from_attributes": True}

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)
