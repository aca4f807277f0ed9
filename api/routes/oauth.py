"""OAuth routes for ScopeStack sign-in.

The frontend keeps the resulting ``OAuthSession`` and sends its access token
as a bearer token on push requests.
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

import base64
import json
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from api.dependencies import get_oauth_service
from api.exceptions.errors import ConfigurationError
from api.models.requests import OAuthAuthorizeRequest, OAuthLoginRequest, RefreshTokenRequest
from api.utils.debug import print__oauth_debug
from scopestack.errors import ScopeStackAPIError
from scopestack.oauth import ScopeStackOAuthService

router = APIRouter()


def _require_client(oauth: ScopeStackOAuthService) -> None:
    if not oauth.client_id or not oauth.client_secret:
        raise ConfigurationError("ScopeStack OAuth client is not configured")


@router.post("/api/oauth/scopestack/authorize")
async def authorize(
    body: OAuthAuthorizeRequest,
    oauth: ScopeStackOAuthService = Depends(get_oauth_service),
):
    _require_client(oauth)
    auth_url = oauth.get_authorization_url(body.state)
    print__oauth_debug(f"🔐 Authorization URL generated for state={body.state!r}")
    return {"success": True, "authUrl": auth_url, "redirectUri": oauth.redirect_uri}


def _redirect_home(**params) -> RedirectResponse:
    return RedirectResponse(url=f"/?{urlencode(params)}", status_code=307)


@router.get("/api/oauth/scopestack/callback")
async def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth: ScopeStackOAuthService = Depends(get_oauth_service),
):
    print__oauth_debug(
        f"🔄 OAuth callback: code={'present' if code else 'missing'} state={state!r} error={error!r}"
    )
    if error:
        return _redirect_home(oauth_error=error)
    if not code:
        return _redirect_home(oauth_error="no_code")

    try:
        session = await oauth.exchange_code_for_tokens(code)
    except ScopeStackAPIError as e:
        print__oauth_debug(f"❌ Code exchange failed: {e}")
        return _redirect_home(oauth_error="callback_failed")

    encoded = base64.b64encode(
        json.dumps(session.model_dump(by_alias=True)).encode("utf-8")
    ).decode("ascii")
    print__oauth_debug(f"✅ OAuth callback succeeded for account {session.account_slug}")
    return _redirect_home(oauth_success="true", session_data=encoded)


@router.post("/api/oauth/scopestack/login")
async def login(
    body: OAuthLoginRequest,
    oauth: ScopeStackOAuthService = Depends(get_oauth_service),
):
    _require_client(oauth)
    try:
        session = await oauth.authenticate_with_password(body.username, body.password)
    except ScopeStackAPIError as e:
        print__oauth_debug(f"❌ Password login failed: {e}")
        raise HTTPException(
            status_code=401, detail="Authentication failed. Please check your credentials."
        ) from e
    return session.model_dump(by_alias=True)


@router.post("/api/refresh-scopestack-token")
async def refresh_token(
    body: RefreshTokenRequest,
    oauth: ScopeStackOAuthService = Depends(get_oauth_service),
):
    if not body.refresh_token:
        raise HTTPException(status_code=400, detail="Refresh token is required")
    try:
        session = await oauth.refresh_access_token(body.refresh_token)
    except ScopeStackAPIError as e:
        print__oauth_debug(f"❌ Token refresh failed: {e}")
        raise HTTPException(
            status_code=401, detail="Session refresh failed. Please log in again."
        ) from e
    print__oauth_debug(f"✅ Token refreshed for account {session.account_slug}")
    return session.model_dump(by_alias=True)
