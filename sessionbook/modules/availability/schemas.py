"""Availability schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from sessionbook.core.enums import RecurrenceEnum, RoleEnum
from sessionbook.modules.identity.schemas import ProviderSummary
from sessionbook.shared.intervals import format_minutes


class SlotCreate(BaseModel):
    """One availability window in a create batch.

    Range and format checks happen in the service so that a failing item can
    be reported by its position in the batch.
    """

    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool = True
    recurrence: RecurrenceEnum = RecurrenceEnum.WEEKLY


class SlotUpdate(BaseModel):
    """Partial availability update."""

    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    is_active: bool | None = None
    recurrence: RecurrenceEnum | None = None


class SlotRead(BaseModel):
    """Availability slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    provider_id: UUID
    provider_name: str
    provider_role: RoleEnum
    day_of_week: int = Field(ge=0, le=6)
    start_minute: int
    end_minute: int
    is_active: bool
    recurrence: RecurrenceEnum
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minute)

    @computed_field
    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minute)


class ProviderAvailabilityRead(BaseModel):
    """Provider card with its ordered slots."""

    provider: ProviderSummary
    slots: list[SlotRead]
