"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID


class UserRegister(BaseModel):
    """Request schema for registration. Doctors get a draft profile."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str
    role: str = Field("patient", pattern="^(doctor|patient)$")
    phone: Optional[str] = None
    gender: Optional[str] = None
    specialty: Optional[str] = None


class UserLogin(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response schema for login: JWT plus who logged in."""
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    role: str
    full_name: Optional[str] = None
    email: str
    doctor_id: Optional[UUID] = None


class UserOut(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
