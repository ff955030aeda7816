"""Repository layer for users.

Platform Admins are stored in ``platform_admins``; every other role is
stored in ``users``. Every operation picks the collection from the role.
Tenant membership is mirrored in the tenant's user id array, which is only
kept in sync when the caller supplies the tenant id.
"""

from __future__ import annotations

from typing import Any, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import PlatformAdminModel, UserModel
from agentmesh.repositories.tenant import TenantRepository

PLATFORM_ADMIN = "Platform Admin"
MSP_STAFF = "MSP Staff"

AVATAR_URL_TEMPLATE = "https://i.pravatar.cc/150?u={email}"

AnyUser = Union[UserModel, PlatformAdminModel]


def model_for_role(role: Optional[str]) -> Type[AnyUser]:
    """Collection model for a role; anything but Platform Admin maps to users."""
    return PlatformAdminModel if role == PLATFORM_ADMIN else UserModel


class UserRepository:
    """Data access layer for users and platform admins."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        email: str,
        role: str,
        tenant_id: Optional[str] = None,
        customer: Optional[str] = None,
    ) -> AnyUser:
        """Create a user in the collection matching its role.

        Non-admin users with a tenant id are also appended to that tenant's
        user array when the tenant exists.
        """
        model = model_for_role(role)
        user = model(
            name=name,
            email=email,
            role=role,
            avatar=AVATAR_URL_TEMPLATE.format(email=email),
            tenant_id=tenant_id,
            customer=customer,
        )
        self.session.add(user)
        await self.session.flush()

        if tenant_id and model is UserModel:
            await TenantRepository(self.session).add_user_id(tenant_id, user.id)
        return user

    async def get(self, user_id: str, role: Optional[str] = None) -> Optional[AnyUser]:
        model = model_for_role(role)
        result = await self.session.execute(select(model).where(model.id == user_id))
        return result.scalar_one_or_none()

    async def list_users(self) -> list[UserModel]:
        result = await self.session.execute(select(UserModel).order_by(UserModel.created_at))
        return list(result.scalars().all())

    async def list_platform_admins(self) -> list[PlatformAdminModel]:
        result = await self.session.execute(
            select(PlatformAdminModel).order_by(PlatformAdminModel.created_at)
        )
        return list(result.scalars().all())

    async def update(self, user_id: str, **fields: Any) -> Optional[AnyUser]:
        """Update a user.

        The collection is picked from ``role`` in the update itself, so an
        update without a role always targets ``users``. Fields set to None
        are not written.
        """
        user = await self.get(user_id, role=fields.get("role"))
        if not user:
            return None

        for key, value in fields.items():
            if value is not None and hasattr(user, key) and key not in ("id", "avatar"):
                setattr(user, key, value)

        await self.session.flush()
        return user

    async def delete(
        self,
        user_id: str,
        role: str,
        tenant_id: Optional[str] = None,
    ) -> bool:
        """Delete a user from the collection matching ``role``.

        The id is scrubbed from the tenant's user array only when
        ``tenant_id`` is given; otherwise the tenant keeps a dangling id.
        """
        model = model_for_role(role)
        if tenant_id and model is UserModel:
            await TenantRepository(self.session).remove_user_id(tenant_id, user_id)

        user = await self.get(user_id, role=role)
        if not user:
            return False
        await self.session.delete(user)
        await self.session.flush()
        return True

    async def exists_in_role(self, email: Optional[str], role: str) -> bool:
        """Whether ``email`` is registered for a sign-in role.

        Args:
            email: Authenticated email
            role: "Platform Admin" or "MSP Staff"
        """
        if not email:
            return False
        model = model_for_role(role)
        result = await self.session.execute(
            select(model.id).where(model.email == email).limit(1)
        )
        return result.first() is not None

    async def get_profile(self, email: Optional[str]) -> Optional[AnyUser]:
        """Profile for an email, checking platform admins before users."""
        if not email:
            return None
        for model in (PlatformAdminModel, UserModel):
            result = await self.session.execute(
                select(model).where(model.email == email).limit(1)
            )
            user = result.scalar_one_or_none()
            if user is not None:
                return user
        return None
