from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Header
from pydantic import BaseModel

from app.api.dependencies import get_auth_session_repo, get_user_profile_repo
from app.core.config import Settings, get_settings
from app.repos.auth_session_repo import AuthSessionRepo
from app.repos.user_profile_repo import UserProfileRepo
from app.services.token_exchange_service import TokenRequest, exchange_code

# POST /token: authorization_code grant.  The validation chain lives in
# app/services/token_exchange_service.py; this module only binds HTTP.

router = APIRouter(tags=["oauth"])


class TokenResponse(BaseModel):
    access_token: str
    id_token: str | None = None
    scope: str
    token_type: str = "Bearer"
    expires_in: int


@router.post(
    "/token",
    response_model=TokenResponse,
    response_model_exclude_none=True,
)
async def token(
    grant_type: str | None = Form(None),
    code: str | None = Form(None),
    code_verifier: str | None = Form(None),
    redirect_uri: str | None = Form(None),
    authorization: str | None = Header(None),
    sessions: AuthSessionRepo = Depends(get_auth_session_repo),
    profiles: UserProfileRepo = Depends(get_user_profile_repo),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    issued = await exchange_code(
        TokenRequest(
            grant_type=grant_type,
            code=code,
            code_verifier=code_verifier,
            redirect_uri=redirect_uri,
            authorization=authorization,
        ),
        sessions=sessions,
        profiles=profiles,
        settings=settings,
    )
    return TokenResponse(
        access_token=issued.access_token,
        id_token=issued.id_token,
        scope=issued.scope,
        token_type=issued.token_type,
        expires_in=issued.expires_in,
    )
