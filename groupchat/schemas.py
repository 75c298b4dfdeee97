"""
Request and response schemas for the group chat API.

Request models validate input at the boundary; response models decide which
columns ever leave the service (the password hash never does).
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class MessageCreate(BaseModel):
    # identity fields in the body are ignored; the author comes from the token
    message: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    message: str
    timestamp: datetime


class Principal(BaseModel):
    """Identity extracted from a verified session token."""

    id: int
    username: str
    email: str
