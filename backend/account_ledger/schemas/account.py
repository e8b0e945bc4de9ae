from datetime import datetime
from typing import Dict, Optional
import uuid

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class AccountRegister(BaseModel):
    username: str = Field(min_length=3, max_length=32)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class CredentialCheck(BaseModel):
    username: str
    password: str


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = Field(default=None, max_length=512)
    status: Optional[str] = Field(default=None, max_length=140)
    social_links: Optional[Dict[str, str]] = None


class RenameRequest(BaseModel):
    username: str = Field(min_length=3, max_length=32)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class StatisticSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wins: int
    losses: int
    draws: int


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    rating: int
    coins: int
    statistic: StatisticSchema
    avatar_url: Optional[str] = None
    status: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    rating: int
    statistic: StatisticSchema
