"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles issued by the identity provider."""

    STUDENT = "student"
    TUTOR = "tutor"
    COUNSELOR = "counselor"
    ADMIN = "admin"

    @property
    def is_provider(self) -> bool:
        return self in PROVIDER_ROLES


PROVIDER_ROLES: frozenset[RoleEnum] = frozenset({RoleEnum.TUTOR, RoleEnum.COUNSELOR})


class RecurrenceEnum(StrEnum):
    """Availability slot recurrence mode."""

    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatusEnum.CANCELLED, BookingStatusEnum.COMPLETED)


ACTIVE_BOOKING_STATUSES: tuple[BookingStatusEnum, ...] = (
    BookingStatusEnum.PENDING,
    BookingStatusEnum.CONFIRMED,
)


class SessionTypeEnum(StrEnum):
    """How the booked session takes place."""

    VIRTUAL = "virtual"
    IN_PERSON = "in-person"


class NotificationStatusEnum(StrEnum):
    """Notification read status."""

    UNREAD = "unread"
    READ = "read"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
