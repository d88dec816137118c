"""Availability API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status

from sessionbook.modules.availability.schemas import (
    ProviderAvailabilityRead,
    SlotCreate,
    SlotRead,
    SlotUpdate,
)
from sessionbook.modules.availability.service import AvailabilityService, get_availability_service
from sessionbook.modules.identity.schemas import ProviderSummary
from sessionbook.modules.identity.service import get_current_user

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("", response_model=list[SlotRead], status_code=status.HTTP_201_CREATED)
async def create_slots(
    payload: SlotCreate | list[SlotCreate] = Body(...),
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(get_current_user),
) -> list[SlotRead]:
    """Create one slot or a batch of slots (all-or-nothing)."""
    items = payload if isinstance(payload, list) else [payload]
    slots = await service.create_slots(items, current_user)
    return [SlotRead.model_validate(slot) for slot in slots]


@router.get("/my", response_model=list[SlotRead])
async def list_my_slots(
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(get_current_user),
) -> list[SlotRead]:
    """List caller's own availability."""
    slots = await service.list_my_slots(current_user)
    return [SlotRead.model_validate(slot) for slot in slots]


@router.get("/providers", response_model=list[ProviderAvailabilityRead])
async def list_providers_availability(
    service: AvailabilityService = Depends(get_availability_service),
    _=Depends(get_current_user),
) -> list[ProviderAvailabilityRead]:
    """List every provider with their active slots."""
    entries = await service.list_all_providers()
    return [
        ProviderAvailabilityRead(
            provider=ProviderSummary.model_validate(provider),
            slots=[SlotRead.model_validate(slot) for slot in slots],
        )
        for provider, slots in entries
    ]


@router.get("/providers/{provider_id}", response_model=ProviderAvailabilityRead)
async def get_provider_availability(
    provider_id: UUID,
    active_only: bool = Query(default=True),
    service: AvailabilityService = Depends(get_availability_service),
    _=Depends(get_current_user),
) -> ProviderAvailabilityRead:
    """Provider availability ordered by day and start time."""
    provider, slots = await service.list_for_provider(provider_id, active_only)
    return ProviderAvailabilityRead(
        provider=ProviderSummary.model_validate(provider),
        slots=[SlotRead.model_validate(slot) for slot in slots],
    )


@router.put("/{slot_id}", response_model=SlotRead)
async def update_slot(
    slot_id: UUID,
    payload: SlotUpdate,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(get_current_user),
) -> SlotRead:
    """Update own availability slot."""
    slot = await service.update_slot(slot_id, payload, current_user)
    return SlotRead.model_validate(slot)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(get_current_user),
) -> Response:
    """Delete own availability slot."""
    await service.delete_slot(slot_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
