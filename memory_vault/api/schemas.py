"""
Request/response models for the Memory Vault HTTP API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..core.security import (
    is_strong_password,
    is_valid_email,
    is_valid_pin,
    is_valid_username,
    normalize_email,
    normalize_username,
)


# Accounts
class SignupRequest(BaseModel):
    email: str
    username: str
    password: str
    name: Optional[str] = None

    @field_validator('email')
    @classmethod
    def email_must_be_valid(cls, v):
        v = normalize_email(v)
        if not is_valid_email(v):
            raise ValueError('Enter a valid email address')
        return v

    @field_validator('username')
    @classmethod
    def username_must_be_valid(cls, v):
        v = normalize_username(v)
        if not is_valid_username(v):
            raise ValueError('Username must be 3-20 characters (letters, numbers, underscore)')
        return v

    @field_validator('password')
    @classmethod
    def password_must_be_strong(cls, v):
        if not is_strong_password(v):
            raise ValueError('Password must be at least 8 characters and include letters and numbers')
        return v


class SigninRequest(BaseModel):
    identifier: str
    password: str

    @field_validator('identifier')
    @classmethod
    def identifier_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('identifier cannot be empty')
        return v.strip().lower()


class UserInfo(BaseModel):
    id: str
    email: str
    username: str
    name: str


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user: UserInfo


# Notes
class NoteCreateRequest(BaseModel):
    title: str = ""
    content: str = ""
    category: str
    importance: bool = False

    @field_validator('category')
    @classmethod
    def category_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('category cannot be empty')
        return v.strip()


class NoteUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    importance: Optional[bool] = None
    is_favorite: Optional[bool] = None


class NoteResponse(BaseModel):
    id: str
    title: str
    content: str
    category: str
    importance: bool
    is_favorite: bool
    timestamp: Optional[datetime] = None


class NoteItemResponse(BaseModel):
    success: bool = True
    data: NoteResponse


class NoteListResponse(BaseModel):
    success: bool = True
    data: List[NoteResponse]
    personal_locked: bool


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Personal vault PIN
class PinRequest(BaseModel):
    pin: str

    @field_validator('pin')
    @classmethod
    def pin_must_be_digits(cls, v):
        v = v.strip()
        if not is_valid_pin(v):
            raise ValueError('PIN must be 4 to 6 digits')
        return v


class PinResetRequest(BaseModel):
    password: str
    new_pin: str

    @field_validator('new_pin')
    @classmethod
    def new_pin_must_be_digits(cls, v):
        v = v.strip()
        if not is_valid_pin(v):
            raise ValueError('New PIN must be 4 to 6 digits')
        return v


class PinStatusResponse(BaseModel):
    success: bool = True
    configured: bool
    unlocked: bool
    expires_at: Optional[datetime] = None


class UnlockResponse(BaseModel):
    success: bool = True
    message: str = "Personal vault unlocked"
    unlock_token: str
    expires_at: datetime


# Assistant
class ChatRequest(BaseModel):
    message: str

    @field_validator('message')
    @classmethod
    def message_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('Message is required')
        return v

    @field_validator('message')
    @classmethod
    def message_must_be_reasonable_length(cls, v):
        if len(v) > 2000:
            raise ValueError('message must be less than 2000 characters')
        return v


class ChatResponse(BaseModel):
    success: bool = True
    response: str
    source: str  # "policy", "openai", "ollama", "fallback"
    policy: Optional[str] = None
    model: Optional[str] = None
    note: Optional[str] = None
    knowledge_hits: Optional[int] = None


# Admin
class AdminMeResponse(BaseModel):
    success: bool = True
    is_admin: bool
    current_email: Optional[str] = None
    owner_email: Optional[str] = None


class ActivityResponse(BaseModel):
    id: str
    timestamp: datetime
    action: str
    email: Optional[str] = None
    user_id: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None
    ip: Optional[str] = None
    details: Dict[str, Any] = {}


class ActivityListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[ActivityResponse]


class ActivityStatsResponse(BaseModel):
    success: bool = True
    total_activities: int
    by_action: Dict[str, int]
    latest: Optional[datetime] = None


# Service
class HealthResponse(BaseModel):
    success: bool
    message: str
    version: str
    db_health: bool


class DebugConfigResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    assistant_provider: str
    model_name: str
    has_openai_key: bool
    knowledge_entries: int
    admin_configured: bool
    config_issues: List[str]
    timestamp: datetime
