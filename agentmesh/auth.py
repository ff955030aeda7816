"""Sign-in support around the hosted identity provider.

The provider checks the password. This module holds what the service adds
on top: the post-check that the authenticated email is registered for the
role the user signed in as, and the mapping of sign-in failures to the
messages shown on the login form.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.repositories.user import UserRepository

logger = logging.getLogger("agentmesh.auth")

USER_NOT_FOUND_IN_ROLE = "USER_NOT_FOUND_IN_ROLE"

_CREDENTIAL_ERROR_CODES = frozenset({
    "auth/user-not-found",
    "auth/wrong-password",
    "auth/invalid-credential",
})

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password provided."
WRONG_ROLE_MESSAGE = "Login failed: User does not have the selected role."
GENERIC_SIGN_IN_MESSAGE = "Invalid email or password. Please try again."


class UserNotInRoleError(Exception):
    """The authenticated email is not registered for the requested role."""

    def __init__(self, email: Optional[str], role: str):
        super().__init__(USER_NOT_FOUND_IN_ROLE)
        self.email = email
        self.role = role


async def verify_role(session: AsyncSession, email: Optional[str], role: str) -> None:
    """Post-sign-in check that ``email`` exists in the collection for ``role``.

    The caller signs the user out of the provider when this raises.

    Raises:
        UserNotInRoleError: No record for the email under that role
    """
    if not await UserRepository(session).exists_in_role(email, role):
        logger.info("Sign-in rejected: %s not registered as %s", email, role)
        raise UserNotInRoleError(email, role)


def sign_in_error_message(code: Optional[str] = None, message: Optional[str] = None) -> str:
    """Login form message for a failed sign-in.

    Any failure outside the known credential codes and the role post-check,
    network and quota errors included, falls through to the generic
    invalid-credentials message.
    """
    if code in _CREDENTIAL_ERROR_CODES:
        return INVALID_CREDENTIALS_MESSAGE
    if message == USER_NOT_FOUND_IN_ROLE or code == USER_NOT_FOUND_IN_ROLE:
        return WRONG_ROLE_MESSAGE
    return GENERIC_SIGN_IN_MESSAGE
