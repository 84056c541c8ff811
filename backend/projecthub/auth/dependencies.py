"""
Bearer API key authentication.

`Auth` is the only way routers learn who is calling. The resolved user is
handed to services explicitly; nothing below the router reads a global
"current user".

Every failure (no header, wrong scheme, unknown or revoked key) raises the
same AuthenticationError, which core.errors turns into a bare 401. Raw keys
are never logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.keys import hash_api_key
from projecthub.core.database import get_db_session
from projecthub.core.errors import AuthenticationError
from projecthub.models.api_key import APIKey
from projecthub.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthContext:
    user: User
    api_key_id: int


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("unsupported Authorization scheme")
    return token


async def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    session: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    token = _bearer_token(authorization)

    stmt = (
        select(APIKey, User)
        .join(User, User.id == APIKey.user_id)
        .where(APIKey.key_hash == hash_api_key(token))
    )
    row = (await session.execute(stmt)).first()
    if row is None:
        raise AuthenticationError("unknown API key")

    api_key, user = row
    if not api_key.is_active:
        logger.warning("Revoked API key %s (%s…) used by user %s", api_key.id, api_key.prefix, user.id)
        raise AuthenticationError("inactive API key")

    return AuthContext(user=user, api_key_id=api_key.id)


Auth = Annotated[AuthContext, Depends(get_current_user)]
