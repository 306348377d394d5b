import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError

from safeportal.db.session import get_db
from safeportal.core import security
from safeportal.core.config import settings
from safeportal.core.policies import Principal
from safeportal.schemas.auth import TokenPayload
from safeportal.services.identity_service import IdentityService

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login"
)


async def resolve_principal(db: AsyncSession, token: str) -> Optional[Principal]:
    """
    Turn a bearer token into the identity it was issued for, with that
    identity's current roles. None when the token or its subject is invalid.
    """
    payload = security.decode_access_token(token)
    if payload is None:
        return None
    try:
        token_data = TokenPayload(**payload)
        user_id = uuid.UUID(token_data.sub or "")
    except (ValidationError, ValueError):
        return None
    return await IdentityService.load_principal(db, user_id)


async def get_current_principal(
    db: AsyncSession = Depends(get_db),
    token: str = Depends(reusable_oauth2)
) -> Principal:
    principal = await resolve_principal(db, token)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def get_current_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return principal


def get_current_elevated(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_elevated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin or moderator access required"
        )
    return principal
