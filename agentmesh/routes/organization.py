"""Tenant, user and platform admin endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..models.schemas import (
    Customer,
    TenantCreate,
    TenantResponse,
    UserCreate,
    UserResponse,
    UserRole,
    UserUpdate,
)
from ..repositories.tenant import TenantRepository
from ..repositories.user import UserRepository

logger = logging.getLogger("agentmesh.routes.organization")

router = APIRouter(prefix="/api/v2", tags=["organization"])


def _user_to_response(user, tenant_id: Optional[str] = None) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        avatar=user.avatar,
        tenant_id=tenant_id or user.tenant_id,
        customer=user.customer,
    )


def _tenant_to_response(tenant, users) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        name=tenant.name,
        customers=[Customer(**c) for c in tenant.customers or []],
        users=[_user_to_response(u, tenant_id=tenant.id) for u in users],
    )


# ---------------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------------

@router.get("/tenants", response_model=List[TenantResponse])
async def list_tenants(
    tenant_id: Optional[str] = Query(None, description="Only this tenant"),
    session: AsyncSession = Depends(get_session),
):
    """Tenants with their user ids resolved to user records."""
    resolved = await TenantRepository(session).list_with_users(tenant_id)
    return [_tenant_to_response(r["tenant"], r["users"]) for r in resolved]


@router.post("/tenants", response_model=TenantResponse, status_code=201)
async def create_tenant(payload: TenantCreate, session: AsyncSession = Depends(get_session)):
    tenant = await TenantRepository(session).create(payload.name, payload.customer_names)
    logger.info(f"Tenant created: {tenant.id} ({tenant.name})")
    return _tenant_to_response(tenant, [])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=List[UserResponse])
async def list_users(session: AsyncSession = Depends(get_session)):
    users = await UserRepository(session).list_users()
    return [_user_to_response(u) for u in users]


@router.get("/platform-admins", response_model=List[UserResponse])
async def list_platform_admins(session: AsyncSession = Depends(get_session)):
    admins = await UserRepository(session).list_platform_admins()
    return [_user_to_response(a) for a in admins]


@router.get("/users/profile", response_model=UserResponse)
async def get_user_profile(
    email: str = Query(..., description="Signed-in email"),
    session: AsyncSession = Depends(get_session),
):
    """Profile for an email. Platform admins are checked first."""
    user = await UserRepository(session).get_profile(email)
    if not user:
        raise HTTPException(status_code=404, detail=f"No user with email '{email}'")
    return _user_to_response(user)


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(payload: UserCreate, session: AsyncSession = Depends(get_session)):
    """Create a user in the collection for its role."""
    user = await UserRepository(session).create(
        name=payload.name,
        email=payload.email,
        role=payload.role,
        tenant_id=payload.tenant_id,
        customer=payload.customer,
    )
    logger.info(f"User created: {user.id} ({user.role})")
    return _user_to_response(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Update a user. Without a role in the body the users collection is used."""
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    user = await UserRepository(session).update(user_id, **updates)
    if not user:
        raise HTTPException(status_code=404, detail=f"User '{user_id}' not found")
    return _user_to_response(user)


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    role: UserRole = Query(..., description="Role deciding the collection"),
    tenant_id: Optional[str] = Query(None, description="Tenant to scrub the id from"),
    session: AsyncSession = Depends(get_session),
):
    deleted = await UserRepository(session).delete(user_id, role, tenant_id=tenant_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"User '{user_id}' not found")
    logger.info(f"User deleted: {user_id} ({role})")
