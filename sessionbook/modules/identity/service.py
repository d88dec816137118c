"""Identity business logic layer."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.database import get_db_session
from sessionbook.core.enums import RoleEnum
from sessionbook.core.security import bearer_scheme, decode_token
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.shared.exceptions import PermissionDeniedException

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class IdentityService:
    """Maps verified identity-provider claims onto the local user directory."""

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def resolve_user(self, claims: dict[str, Any]) -> User:
        """Trust ``sub`` as the actor id and mirror role/name/email locally."""
        if claims.get("type") != "access":
            raise _unauthorized("Invalid access token")

        subject = claims.get("sub")
        if not subject:
            raise _unauthorized("Token subject is missing")
        try:
            user_id = UUID(str(subject))
        except ValueError as exc:
            raise _unauthorized("Token subject is not a valid id") from exc

        try:
            role = RoleEnum(str(claims.get("role", "")).strip().lower())
        except ValueError as exc:
            raise _unauthorized("Token role is not recognized") from exc

        user = await self.repository.upsert_user(
            user_id=user_id,
            role=role,
            full_name=claims.get("name"),
            email=claims.get("email"),
        )
        if not user.is_active:
            raise PermissionDeniedException("User is inactive")
        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    claims = decode_token(credentials.credentials)
    return await service.resolve_user(claims)

