"""Sign-in post-check endpoints.

The identity provider verifies the password; these endpoints run the role
check after it and translate failures into login form messages.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import WRONG_ROLE_MESSAGE, UserNotInRoleError, sign_in_error_message, verify_role
from ..database import get_session
from ..models.schemas import (
    RoleCheckRequest,
    SignInErrorRequest,
    SignInErrorResponse,
    UserResponse,
)
from ..repositories.user import UserRepository
from .organization import _user_to_response

router = APIRouter(prefix="/api/v2/auth", tags=["auth"])


@router.post("/verify-role", response_model=UserResponse)
async def verify_sign_in_role(payload: RoleCheckRequest, session: AsyncSession = Depends(get_session)):
    """Confirm the signed-in email holds the selected role and return its profile."""
    try:
        await verify_role(session, payload.email, payload.role)
    except UserNotInRoleError:
        raise HTTPException(status_code=403, detail=WRONG_ROLE_MESSAGE)
    return _user_to_response(await UserRepository(session).get_profile(payload.email))


@router.post("/error-message", response_model=SignInErrorResponse)
async def map_sign_in_error(payload: SignInErrorRequest):
    return SignInErrorResponse(message=sign_in_error_message(payload.code, payload.message))
