"""Registration, login and token lifecycle. Mounted under ``/auth``."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status

from app.core.dependencies import Client, DBSession
from app.core.security import TokenPayload, get_current_token, get_current_user
from app.modules.auth.models import Profile
from app.modules.auth.schemas import (
    LanguageUpdate,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    TokenPair,
    TokenRefresh,
    VerifyEmailRequest,
)
from app.modules.auth.service import AuthService
from app.modules.settings.cache import SettingsCacheDep

router = APIRouter()

CurrentProfile = Annotated[Profile, Depends(get_current_user)]


@router.post("/register", response_model=MeResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: DBSession,
    client: Client,
    settings_cache: SettingsCacheDep,
) -> MeResponse:
    """New accounts are unverified Viewers; a confirmation link is emailed."""
    profile = await AuthService(db, settings_cache).register(data, client.ip_address)
    return MeResponse.model_validate(profile)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, db: DBSession) -> LoginResponse:
    profile, tokens = await AuthService(db).authenticate(data)
    return LoginResponse(tokens=tokens, user=MeResponse.model_validate(profile))


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(data: TokenRefresh, db: DBSession) -> TokenPair:
    return await AuthService(db).refresh_tokens(data.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    db: DBSession,
    data: TokenRefresh | None = Body(default=None),
    token: TokenPayload = Depends(get_current_token),
) -> None:
    """Revoke the access token, and the refresh token when one is sent."""
    await AuthService(db).logout(token, data.refresh_token if data else None)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(data: VerifyEmailRequest, db: DBSession) -> MessageResponse:
    await AuthService(db).verify_email(data.token)
    return MessageResponse(message="Email confirmed")


@router.get("/me", response_model=MeResponse)
async def get_me(user: CurrentProfile) -> MeResponse:
    return MeResponse.model_validate(user)


@router.put("/language", response_model=MeResponse)
async def set_language(data: LanguageUpdate, db: DBSession, user: CurrentProfile) -> MeResponse:
    profile = await AuthService(db).set_language(user, data.language)
    return MeResponse.model_validate(profile)
