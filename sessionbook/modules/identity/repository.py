"""Identity repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.enums import PROVIDER_ROLES, RoleEnum
from sessionbook.modules.identity.models import User


class IdentityRepository:
    """DB operations for the user directory."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return await self.session.scalar(stmt)

    async def get_provider(self, provider_id: UUID, *, lock: bool = False) -> User | None:
        """Return user only if it holds a provider role.

        With ``lock`` the row is taken ``FOR UPDATE`` so that every write that
        depends on the provider's schedule is serialized per provider.
        """
        stmt = select(User).where(User.id == provider_id, User.role.in_(PROVIDER_ROLES))
        if lock:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def list_providers(self) -> list[User]:
        stmt = select(User).where(User.role.in_(PROVIDER_ROLES)).order_by(User.full_name.asc())
        return list((await self.session.scalars(stmt)).all())

    async def upsert_user(
        self,
        user_id: UUID,
        role: RoleEnum,
        full_name: str | None,
        email: str | None,
    ) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            user = User(id=user_id, role=role, full_name=full_name or "", email=email)
            self.session.add(user)
        else:
            user.role = role
            if full_name:
                user.full_name = full_name
            if email:
                user.email = email
        await self.session.flush()
        return user
