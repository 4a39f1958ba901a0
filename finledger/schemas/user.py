"""
User profile Pydantic schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer


class UpdateNamesRequest(BaseModel):
    first_name: str = Field(..., max_length=100, examples=["John"])
    second_name: str = Field(..., max_length=100, examples=["Doe"])


class UserProfileResponse(BaseModel):
    uid: str
    username: str
    first_name: str
    second_name: str
    registered_at: datetime
    income_balance: Decimal
    expense_balance: Decimal

    @field_serializer("income_balance", "expense_balance")
    def serialize_balance(self, value: Decimal) -> float:
        return float(value)


class AdviceResponse(BaseModel):
    advice: str
