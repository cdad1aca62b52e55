"""
Pydantic schemas for request bodies, responses and validation results.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ═══════════════════════════════════════════════════════════════════════════════
# Request bodies
# ═══════════════════════════════════════════════════════════════════════════════


class EmptySchema(BaseModel):
    """Fallback for routes without a dedicated schema; accepts any object."""

    model_config = ConfigDict(extra="allow")


class AuthenticateUserSchema(BaseModel):
    email: str = Field(..., min_length=5, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterUserSchema(BaseModel):
    username: str = Field(..., min_length=2, max_length=64)
    email: str = Field(..., min_length=5, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)


class UpdateUserSchema(BaseModel):
    """Partial profile update; omitted fields are left untouched."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(None, min_length=2, max_length=64)
    email: Optional[str] = Field(None, min_length=5, max_length=255, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(None, min_length=8, max_length=128)


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Validation results
# ═══════════════════════════════════════════════════════════════════════════════


class ValidationIssue(BaseModel):
    path: str
    message: str


class ValidationSuccess(BaseModel):
    success: Literal[True] = True
    data: Any = None


class ValidationFailure(BaseModel):
    success: Literal[False] = False
    issues: List[ValidationIssue] = Field(default_factory=list)


ValidationResult = Union[ValidationSuccess, ValidationFailure]
