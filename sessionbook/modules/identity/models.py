"""Identity ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionbook.core.database import Base, BaseModelMixin, enum_values
from sessionbook.core.enums import RoleEnum

if TYPE_CHECKING:
    from sessionbook.modules.availability.models import AvailabilitySlot
    from sessionbook.modules.booking.models import Booking
    from sessionbook.modules.notifications.models import Notification


class User(BaseModelMixin, Base):
    """Local directory entry mirrored from identity provider claims.

    The primary key is the provider-issued subject id.
    """

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    availability_slots: Mapped[list["AvailabilitySlot"]] = relationship(
        back_populates="provider",
        cascade="all, delete-orphan",
    )
    bookings_as_student: Mapped[list["Booking"]] = relationship(
        back_populates="student",
        foreign_keys="Booking.student_id",
    )
    bookings_as_provider: Mapped[list["Booking"]] = relationship(
        back_populates="provider",
        foreign_keys="Booking.provider_id",
    )
    notifications: Mapped[list["Notification"]] = relationship(back_populates="user")
