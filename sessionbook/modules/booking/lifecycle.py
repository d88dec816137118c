"""Booking lifecycle state machine.

``pending`` is the only initial state. ``cancelled`` and ``completed`` are
terminal: once reached, every further transition is rejected before the
actor is even looked at.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID

from sessionbook.core.enums import BookingStatusEnum, RoleEnum
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.identity.models import User
from sessionbook.shared.exceptions import (
    InvalidStateException,
    PermissionDeniedException,
    ValidationException,
)


class Party(StrEnum):
    """Capacity in which an actor touches a booking."""

    STUDENT = "student"
    PROVIDER = "provider"
    ADMIN = "admin"


TRANSITIONS: dict[BookingStatusEnum, dict[BookingStatusEnum, frozenset[Party]]] = {
    BookingStatusEnum.PENDING: {
        BookingStatusEnum.CONFIRMED: frozenset({Party.PROVIDER, Party.ADMIN}),
        BookingStatusEnum.CANCELLED: frozenset({Party.PROVIDER, Party.ADMIN, Party.STUDENT}),
    },
    BookingStatusEnum.CONFIRMED: {
        BookingStatusEnum.COMPLETED: frozenset({Party.PROVIDER, Party.ADMIN}),
        BookingStatusEnum.CANCELLED: frozenset({Party.PROVIDER, Party.ADMIN, Party.STUDENT}),
    },
}

TERMINAL_MESSAGES = {
    BookingStatusEnum.CANCELLED: "Booking is already cancelled",
    BookingStatusEnum.COMPLETED: "Cannot modify a completed booking",
}

DEFAULT_CANCELLATION_REASONS = {
    Party.STUDENT: "Cancelled by student",
    Party.PROVIDER: "Cancelled by provider",
    Party.ADMIN: "Cancelled by admin",
}


def parties_for(booking: Booking, actor: User) -> frozenset[Party]:
    parties: set[Party] = set()
    if actor.role == RoleEnum.ADMIN:
        parties.add(Party.ADMIN)
    if booking.provider_id == actor.id:
        parties.add(Party.PROVIDER)
    if booking.student_id == actor.id:
        parties.add(Party.STUDENT)
    return frozenset(parties)


def acting_party(parties: frozenset[Party]) -> Party:
    """Most privileged capacity; decides the default reason and the lead-time rule."""
    for party in (Party.ADMIN, Party.PROVIDER, Party.STUDENT):
        if party in parties:
            return party
    raise PermissionDeniedException("You are not authorized to manage this booking")


def check_transition(
    booking: Booking,
    target: BookingStatusEnum,
    actor: User,
    *,
    now: datetime,
    cancellation_window: timedelta,
) -> Party:
    """Validate ``booking.status -> target`` for ``actor``; return the acting party."""
    if booking.status.is_terminal:
        raise InvalidStateException(TERMINAL_MESSAGES[booking.status])

    party = acting_party(parties_for(booking, actor))

    allowed = TRANSITIONS[booking.status].get(target)
    if allowed is None:
        raise InvalidStateException(f"Cannot move a {booking.status} booking to {target}")
    if party not in allowed:
        raise PermissionDeniedException(f"Only the provider or an admin can mark a booking as {target}")

    if target == BookingStatusEnum.CANCELLED and party == Party.STUDENT:
        if not now < booking.start_at - cancellation_window:
            hours = int(cancellation_window.total_seconds() // 3600)
            raise ValidationException(f"Bookings can only be cancelled at least {hours} hours in advance")

    return party


def apply_transition(
    booking: Booking,
    target: BookingStatusEnum,
    party: Party,
    *,
    now: datetime,
    reason: str | None = None,
) -> BookingStatusEnum:
    """Mutate booking to ``target``; return the previous status."""
    previous = booking.status
    booking.status = target
    if target == BookingStatusEnum.CONFIRMED:
        booking.confirmed_at = now
    elif target == BookingStatusEnum.COMPLETED:
        booking.completed_at = now
    elif target == BookingStatusEnum.CANCELLED:
        booking.cancelled_at = now
        booking.cancellation_reason = reason or DEFAULT_CANCELLATION_REASONS[party]
    return previous


def counterparties(booking: Booking, actor: User) -> list[UUID]:
    """Participants to notify: everyone on the booking except the actor."""
    recipients: list[UUID] = []
    for user_id in (booking.student_id, booking.provider_id):
        if user_id != actor.id and user_id not in recipients:
            recipients.append(user_id)
    return recipients
