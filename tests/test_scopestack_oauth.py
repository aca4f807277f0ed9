"""Tests for ScopeStackOAuthService grants and session handling."""

import time
from urllib.parse import parse_qs, urlparse

import pytest

from scopestack.errors import ScopeStackAPIError
from scopestack.models import OAuthSession
from scopestack.oauth import ScopeStackOAuthService
from tests.helpers import FakeOAuthServer


@pytest.mark.asyncio
async def test_password_grant_builds_session():
    server = FakeOAuthServer(expires_in=3600)
    before = int(time.time() * 1000)

    session = await server.service().authenticate_with_password("ada@acme.io", "pw")

    assert server.forms == [
        {
            "client_id": "cid",
            "client_secret": "secret",
            "grant_type": "password",
            "username": "ada@acme.io",
            "password": "pw",
        }
    ]
    assert server.me_tokens == ["Bearer new-access"]
    assert session.access_token == "new-access"
    assert session.refresh_token == "new-refresh"
    assert session.account_slug == "acme"
    assert session.account_id == "7"
    assert before + 3600 * 1000 <= session.expires_at <= int(time.time() * 1000) + 3600 * 1000


@pytest.mark.asyncio
async def test_refresh_and_code_exchange_grants():
    server = FakeOAuthServer()
    service = server.service(redirect_uri="https://app.example.com/callback")

    await service.refresh_access_token("old-refresh")
    await service.exchange_code_for_tokens("the-code")

    assert server.forms[0]["grant_type"] == "refresh_token"
    assert server.forms[0]["refresh_token"] == "old-refresh"
    assert server.forms[1]["grant_type"] == "authorization_code"
    assert server.forms[1]["code"] == "the-code"
    assert server.forms[1]["redirect_uri"] == "https://app.example.com/callback"


@pytest.mark.asyncio
async def test_rejected_grant_raises():
    server = FakeOAuthServer(token_status=401)
    with pytest.raises(ScopeStackAPIError) as exc_info:
        await server.service().authenticate_with_password("ada", "wrong")
    assert exc_info.value.status_code == 401
    assert exc_info.value.body == "invalid_grant"
    assert server.me_tokens == []


def test_authorization_url():
    service = ScopeStackOAuthService(
        "cid", "secret", authorize_url="https://app.scopestack.test/oauth/authorize",
        redirect_uri="https://app.example.com/callback",
    )
    url = urlparse(service.get_authorization_url("xyz"))
    query = parse_qs(url.query)

    assert url.netloc == "app.scopestack.test"
    assert query == {
        "response_type": ["code"],
        "client_id": ["cid"],
        "redirect_uri": ["https://app.example.com/callback"],
        "state": ["xyz"],
    }


def test_token_expiry_has_five_minute_buffer():
    now = int(time.time() * 1000)
    fresh = OAuthSession(access_token="a", expires_at=now + 10 * 60 * 1000)
    nearly = OAuthSession(access_token="a", expires_at=now + 60 * 1000)
    assert not ScopeStackOAuthService.is_token_expired(fresh)
    assert ScopeStackOAuthService.is_token_expired(nearly)
