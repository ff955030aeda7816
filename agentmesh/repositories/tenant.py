"""Repository layer for tenants.

Tenants hold their user ids as a plain array; ``list_with_users`` resolves
that array against the ``users`` collection.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import TenantModel, UserModel


def customer_slug(name: str) -> str:
    """Customer id derived from its name: lowercase, spaces to dashes."""
    return name.lower().replace(" ", "-")


class TenantRepository:
    """Data access layer for tenants."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, customer_names: Iterable[str]) -> TenantModel:
        customers = [{"id": customer_slug(n), "name": n} for n in customer_names]
        tenant = TenantModel(name=name, customers=customers, users=[])
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def get(self, tenant_id: str) -> Optional[TenantModel]:
        result = await self.session.execute(
            select(TenantModel).where(TenantModel.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[TenantModel]:
        result = await self.session.execute(
            select(TenantModel).order_by(TenantModel.created_at, TenantModel.name)
        )
        return list(result.scalars().all())

    async def add_user_id(self, tenant_id: str, user_id: str) -> Optional[TenantModel]:
        tenant = await self.get(tenant_id)
        if not tenant:
            return None
        tenant.users = [*(tenant.users or []), user_id]
        await self.session.flush()
        return tenant

    async def remove_user_id(self, tenant_id: str, user_id: str) -> Optional[TenantModel]:
        tenant = await self.get(tenant_id)
        if not tenant:
            return None
        tenant.users = [uid for uid in tenant.users or [] if uid != user_id]
        await self.session.flush()
        return tenant

    async def _resolve_users(self, tenant: TenantModel) -> List[UserModel]:
        if not tenant.users:
            return []
        result = await self.session.execute(
            select(UserModel).where(UserModel.id.in_(tenant.users))
        )
        by_id = {u.id: u for u in result.scalars().all()}
        # Dangling ids (user deleted without the tenant) are skipped
        return [by_id[uid] for uid in tenant.users if uid in by_id]

    async def list_with_users(self, tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Tenants with their user ids resolved to user records.

        Args:
            tenant_id: Only this tenant; an unknown id gives an empty list

        Returns:
            [{"tenant": TenantModel, "users": [UserModel, ...]}]. Callers
            report each user under the tenant it was resolved from.
        """
        if tenant_id:
            tenant = await self.get(tenant_id)
            tenants = [tenant] if tenant else []
        else:
            tenants = await self.list()

        resolved = []
        for tenant in tenants:
            users = await self._resolve_users(tenant)
            resolved.append({"tenant": tenant, "users": users})
        return resolved
