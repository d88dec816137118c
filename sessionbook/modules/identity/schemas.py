"""Identity schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from sessionbook.core.enums import RoleEnum


class UserRead(BaseModel):
    """User output schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None
    full_name: str
    role: RoleEnum
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProviderSummary(BaseModel):
    """Public provider card attached to availability listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    role: RoleEnum
