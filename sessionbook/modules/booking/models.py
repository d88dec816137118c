"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionbook.core.database import Base, BaseModelMixin, enum_values
from sessionbook.core.enums import BookingStatusEnum, RoleEnum, SessionTypeEnum

if TYPE_CHECKING:
    from sessionbook.modules.availability.models import AvailabilitySlot
    from sessionbook.modules.identity.models import User


class Booking(BaseModelMixin, Base):
    """Session booked by a student with a tutor or counselor.

    Student/provider names and provider role are snapshots taken at creation
    time and are not kept in sync with later profile edits.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="start_before_end"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="day_of_week_range"),
        Index("ix_bookings_provider_window", "provider_id", "start_at", "end_at"),
    )

    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    availability_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("availability_slots.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        default=BookingStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    session_type: Mapped[SessionTypeEnum] = mapped_column(
        SAEnum(SessionTypeEnum, name="session_type_enum", native_enum=False, values_callable=enum_values),
        default=SessionTypeEnum.VIRTUAL,
        nullable=False,
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    availability: Mapped["AvailabilitySlot | None"] = relationship(back_populates="bookings")
    student: Mapped["User"] = relationship(back_populates="bookings_as_student", foreign_keys=[student_id])
    provider: Mapped["User"] = relationship(back_populates="bookings_as_provider", foreign_keys=[provider_id])
