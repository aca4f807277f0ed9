"""ScopeStack OAuth 2.0 helper.

Supports the password grant, the authorization-code grant and refresh. Each
grant ends with a ``/v1/me`` call so the returned ``OAuthSession`` carries the
account slug needed for scoped API paths.
"""

import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from api.utils.debug import print__oauth_debug
from scopestack.errors import ScopeStackAPIError
from scopestack.models import OAuthSession, ScopeStackUser

# Refresh tokens this long before they actually expire
EXPIRY_BUFFER_MS = 5 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class ScopeStackOAuthService:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str = "https://app.scopestack.io/oauth/token",
        api_base_url: str = "https://api.scopestack.io",
        authorize_url: str = "https://app.scopestack.io/oauth/authorize",
        redirect_uri: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.api_base_url = api_base_url.rstrip("/")
        self.authorize_url = authorize_url
        self.redirect_uri = redirect_uri
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ==========================================================================
    # GRANTS
    # ==========================================================================
    async def _token_request(self, form: Dict[str, str], operation: str) -> Dict[str, Any]:
        data = {"client_id": self.client_id, "client_secret": self.client_secret, **form}
        try:
            response = await self._http.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as exc:
            raise ScopeStackAPIError(f"{operation} failed: {exc}", operation=operation) from exc

        if not response.is_success:
            print__oauth_debug(f"❌ {operation}: HTTP {response.status_code}")
            raise ScopeStackAPIError(
                f"{operation} failed",
                status_code=response.status_code,
                body=response.text,
                operation=operation,
            )
        return response.json()

    async def _build_session(self, tokens: Dict[str, Any]) -> OAuthSession:
        user = await self.get_user_info(tokens["access_token"])
        return OAuthSession(
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            expires_at=_now_ms() + int(tokens.get("expires_in", 7200)) * 1000,
            account_slug=user.account_slug,
            account_id=user.account_id,
            user_name=user.user_name,
            email=user.email,
        )

    async def authenticate_with_password(self, username: str, password: str) -> OAuthSession:
        print__oauth_debug(f"🔐 Password grant for {username}")
        tokens = await self._token_request(
            {"grant_type": "password", "username": username, "password": password},
            "authenticate_with_password",
        )
        return await self._build_session(tokens)

    async def refresh_access_token(self, refresh_token: str) -> OAuthSession:
        print__oauth_debug("🔄 Refreshing access token")
        tokens = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            "refresh_access_token",
        )
        return await self._build_session(tokens)

    def get_authorization_url(self, state: str, redirect_uri: Optional[str] = None) -> str:
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.client_id,
                "redirect_uri": redirect_uri or self.redirect_uri or "",
                "state": state or "",
            }
        )
        return f"{self.authorize_url}?{query}"

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: Optional[str] = None
    ) -> OAuthSession:
        print__oauth_debug("🔐 Exchanging authorization code")
        tokens = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri or self.redirect_uri or "",
            },
            "exchange_code_for_tokens",
        )
        return await self._build_session(tokens)

    # ==========================================================================
    # USER INFO
    # ==========================================================================
    async def get_user_info(self, access_token: str) -> ScopeStackUser:
        try:
            response = await self._http.get(
                f"{self.api_base_url}/v1/me",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.api+json",
                },
            )
        except httpx.HTTPError as exc:
            raise ScopeStackAPIError(f"get_user_info failed: {exc}", operation="get_user_info") from exc

        if not response.is_success:
            raise ScopeStackAPIError(
                "get_user_info failed",
                status_code=response.status_code,
                body=response.text,
                operation="get_user_info",
            )
        attributes = (response.json().get("data") or {}).get("attributes") or {}
        return ScopeStackUser(
            account_id=str(attributes.get("account-id", "")),
            account_slug=attributes.get("account-slug", ""),
            user_name=attributes.get("name", ""),
            email=attributes.get("email", ""),
        )

    @staticmethod
    def is_token_expired(session: OAuthSession) -> bool:
        return _now_ms() > session.expires_at - EXPIRY_BUFFER_MS
