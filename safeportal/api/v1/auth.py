from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core import security
from safeportal.core.config import settings
from safeportal.core.policies import Principal
from safeportal.schemas.auth import SignupRequest, Token, MeResponse
from safeportal.services.identity_service import IdentityService

router = APIRouter()


def _issue_token(user) -> dict:
    access_token = security.create_access_token(
        user.id, user.email, expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer", "user_id": user.id}


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)) -> Any:
    """
    Create an identity (with its profile and default role) and log it in.
    """
    user = await IdentityService.register(db, payload.email, payload.password, payload.full_name)
    return _issue_token(user)


@router.post("/login", response_model=Token)
async def login_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """
    OAuth2 compatible token login, get an access token for future requests.
    """
    user = await IdentityService.authenticate(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    return _issue_token(user)


@router.get("/me", response_model=MeResponse)
async def read_me(principal: Principal = Depends(deps.get_current_principal)) -> Any:
    return MeResponse(
        id=principal.user_id,
        email=principal.email,
        roles=sorted(principal.roles, key=lambda r: r.value),
        is_admin=principal.is_admin,
    )
