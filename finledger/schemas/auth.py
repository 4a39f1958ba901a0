"""
Authentication Pydantic schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field


class AuthRequest(BaseModel):
    """Request body for both register and login"""
    username: str = Field(..., min_length=1, max_length=150, examples=["johndoe"])
    password: str = Field(..., min_length=1, examples=["password123"])


class ChangePasswordRequest(BaseModel):
    """Request body for changing the current user's password"""
    old_password: str = Field(..., examples=["oldpassword123"])
    new_password: str = Field(..., min_length=1, examples=["newpassword123"])


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    uid: str


class TokenResponse(BaseModel):
    """Access token returned after a successful login"""
    token: str
    uid: str
    token_type: str = "bearer"
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str
