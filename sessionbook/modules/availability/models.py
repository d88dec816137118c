"""Availability ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Enum as SAEnum, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionbook.core.database import Base, BaseModelMixin, enum_values
from sessionbook.core.enums import RecurrenceEnum, RoleEnum

if TYPE_CHECKING:
    from sessionbook.modules.booking.models import Booking
    from sessionbook.modules.identity.models import User


class AvailabilitySlot(BaseModelMixin, Base):
    """Recurring weekly availability window of a tutor or counselor.

    Times are minute-of-day offsets; ``[start_minute, end_minute)``.
    """

    __tablename__ = "availability_slots"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="day_of_week_range"),
        CheckConstraint("start_minute < end_minute", name="start_before_end"),
        CheckConstraint("start_minute >= 0 AND end_minute <= 1440", name="minutes_in_day"),
        Index("ix_availability_slots_provider_day", "provider_id", "day_of_week", "start_minute"),
    )

    provider_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider_name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_minute: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    end_minute: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    recurrence: Mapped[RecurrenceEnum] = mapped_column(
        SAEnum(RecurrenceEnum, name="recurrence_enum", native_enum=False, values_callable=enum_values),
        default=RecurrenceEnum.WEEKLY,
        nullable=False,
    )

    provider: Mapped["User"] = relationship(back_populates="availability_slots")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="availability", passive_deletes=True)
