"""Pydantic request/response models for the HTTP API."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Both fields optional at the schema level so a missing one yields 400, not 422."""
    username: Optional[str] = None
    password: Optional[str] = None


class UserOut(BaseModel):
    id: int
    username: str
    name: str


class LoginResponse(BaseModel):
    success: Literal[True] = True
    token: str
    user: UserOut


class ProfileResponse(BaseModel):
    success: Literal[True] = True
    user: dict[str, Any]


class PromoBanner(BaseModel):
    text: Optional[str] = None
    color: Optional[str] = None


class Features(BaseModel):
    newCheckout: bool


class AppConfig(BaseModel):
    promoBanner: PromoBanner
    features: Features


class ConfigResponse(BaseModel):
    success: Literal[True] = True
    config: AppConfig


class ConfigEntryResponse(BaseModel):
    success: Literal[True] = True
    key: str
    value: Optional[str] = None
    lastModified: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    service: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    details: Optional[str] = None
