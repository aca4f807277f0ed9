"""Endpoint tests for health, analytics, OAuth and diagnostics."""

import base64
import json
from urllib.parse import parse_qs, urlparse

import pytest

from api.dependencies import get_llm_client, get_oauth_service, get_scopestack_client_factory
from research_agent.utils.llm_client import LLMCallError, LLMClient, LLMTimeoutError
from tests.helpers import (
    BaseTestResults,
    FakeLLM,
    FakeOAuthServer,
    FakeScopeStackAPI,
    app_under_test,
    asgi_client,
)

REQUIRED_ENDPOINTS = {"/", "/health", "/api/analytics", "/api/test-env", "/openapi.json"}


@pytest.mark.asyncio
async def test_public_endpoints_respond():
    results = BaseTestResults(required_endpoints=REQUIRED_ENDPOINTS)
    with app_under_test() as app:
        async with asgi_client(app) as client:
            for endpoint in sorted(REQUIRED_ENDPOINTS):
                try:
                    response = await client.get(endpoint)
                    results.add_result(endpoint, endpoint, response.status_code, response.json())
                except Exception as e:
                    results.add_error(endpoint, endpoint, e)

    assert results.errors == []
    assert results.missing_endpoints() == set()
    assert all(result["status_code"] == 200 for result in results.results)


@pytest.mark.asyncio
async def test_health_reports_state():
    with app_under_test() as app:
        app.state.request_logger.start("Office 365", "research")
        async with asgi_client(app) as client:
            response = await client.get("/health")

    body = response.json()
    assert body["status"] == "healthy"
    assert body["request_log_entries"] == 1
    assert body["memory"]["rss_mb"] > 0
    assert set(body["rate_limit"]) == {"requests", "window_seconds"}


@pytest.mark.asyncio
async def test_root_lists_endpoints_and_capabilities():
    with app_under_test() as app:
        async with asgi_client(app) as client:
            body = (await client.get("/")).json()
    assert body["endpoints"]["research"].startswith("POST /api/research")
    assert body["capabilities"]["stages"] == ["parse", "research", "analyze", "generate", "format"]


# ==============================================================================
# ANALYTICS
# ==============================================================================
@pytest.mark.asyncio
async def test_analytics_summary_and_logs():
    with app_under_test() as app:
        logger = app.state.request_logger
        for n in range(3):
            entry = logger.start(f"request {n}", "research")
            logger.complete(entry, technology="Office 365")
        async with asgi_client(app) as client:
            summary = (await client.get("/api/analytics")).json()
            logs = (await client.get("/api/analytics", params={"action": "logs", "limit": 2})).json()
            invalid = await client.get("/api/analytics", params={"action": "export"})
            bad_limit = await client.get("/api/analytics", params={"action": "logs", "limit": 0})

    assert summary["success"] is True
    assert summary["data"]["totalRequests"] == 3
    assert summary["data"]["completedRequests"] == 3
    assert summary["data"]["technologies"] == [{"technology": "Office 365", "count": 3}]

    assert logs["count"] == 2
    assert [item["userRequest"] for item in logs["data"]] == ["request 2", "request 2"]
    assert logs["data"][-1]["status"] == "completed"

    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid action. Use ?action=analytics or ?action=logs"
    assert bad_limit.status_code == 422


# ==============================================================================
# OAUTH
# ==============================================================================
def _oauth_override(server: FakeOAuthServer, **kwargs):
    return {get_oauth_service: lambda: server.service(redirect_uri="https://app.example.com/cb", **kwargs)}


@pytest.mark.asyncio
async def test_authorize_returns_url():
    with app_under_test(_oauth_override(FakeOAuthServer())) as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/oauth/scopestack/authorize", json={"state": "abc"})

    body = response.json()
    assert body["success"] is True
    assert body["redirectUri"] == "https://app.example.com/cb"
    query = parse_qs(urlparse(body["authUrl"]).query)
    assert query["state"] == ["abc"]
    assert query["client_id"] == ["cid"]


@pytest.mark.asyncio
async def test_authorize_without_client_config():
    with app_under_test(_oauth_override(FakeOAuthServer(), client_id="")) as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/oauth/scopestack/authorize", json={})
    assert response.status_code == 400
    assert response.json()["code"] == "SCOPESTACK_CONFIG_MISSING"


@pytest.mark.asyncio
async def test_callback_redirects():
    server = FakeOAuthServer()
    with app_under_test(_oauth_override(server)) as app:
        async with asgi_client(app) as client:
            denied = await client.get("/api/oauth/scopestack/callback", params={"error": "access_denied"})
            missing = await client.get("/api/oauth/scopestack/callback")
            ok = await client.get("/api/oauth/scopestack/callback", params={"code": "c1", "state": "abc"})

    assert denied.status_code == 307
    assert denied.headers["location"] == "/?oauth_error=access_denied"
    assert missing.headers["location"] == "/?oauth_error=no_code"

    query = parse_qs(urlparse(ok.headers["location"]).query)
    assert query["oauth_success"] == ["true"]
    session = json.loads(base64.b64decode(query["session_data"][0]))
    assert session["accessToken"] == "new-access"
    assert session["accountSlug"] == "acme"
    assert server.forms[0]["code"] == "c1"


@pytest.mark.asyncio
async def test_callback_exchange_failure_redirects():
    with app_under_test(_oauth_override(FakeOAuthServer(token_status=400))) as app:
        async with asgi_client(app) as client:
            response = await client.get("/api/oauth/scopestack/callback", params={"code": "bad"})
    assert response.headers["location"] == "/?oauth_error=callback_failed"


@pytest.mark.asyncio
async def test_login_and_refresh():
    with app_under_test(_oauth_override(FakeOAuthServer())) as app:
        async with asgi_client(app) as client:
            login = await client.post(
                "/api/oauth/scopestack/login", json={"username": "ada", "password": "pw"}
            )
            refreshed = await client.post("/api/refresh-scopestack-token", json={"refreshToken": "r1"})
            missing = await client.post("/api/refresh-scopestack-token", json={})

    assert login.status_code == 200
    assert login.json()["refreshToken"] == "new-refresh"
    assert refreshed.json()["accessToken"] == "new-access"
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Refresh token is required"


@pytest.mark.asyncio
async def test_login_and_refresh_failures():
    with app_under_test(_oauth_override(FakeOAuthServer(token_status=401))) as app:
        async with asgi_client(app) as client:
            login = await client.post(
                "/api/oauth/scopestack/login", json={"username": "ada", "password": "bad"}
            )
            refreshed = await client.post("/api/refresh-scopestack-token", json={"refreshToken": "r1"})

    assert login.status_code == 401
    assert login.json()["detail"] == "Authentication failed. Please check your credentials."
    assert refreshed.status_code == 401
    assert refreshed.json()["detail"] == "Session refresh failed. Please log in again."


# ==============================================================================
# DIAGNOSTICS
# ==============================================================================
@pytest.mark.asyncio
async def test_env_check_reports_presence_only(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-secret")
    monkeypatch.delenv("SCOPESTACK_API_TOKEN", raising=False)
    with app_under_test() as app:
        async with asgi_client(app) as client:
            body = (await client.get("/api/test-env")).json()

    assert body["environment"]["OPENROUTER_API_KEY"] is True
    assert body["environment"]["SCOPESTACK_API_TOKEN"] is False
    assert body["hasRequiredVars"] is False
    assert "sk-secret" not in json.dumps(body)


@pytest.mark.asyncio
async def test_scopestack_connection_test():
    api = FakeScopeStackAPI()
    with app_under_test({get_scopestack_client_factory: api.client_factory}) as app:
        async with asgi_client(app) as client:
            ok = await client.post("/api/test-scopestack", json={"token": "tok"})
            api.failures["GET /v1/me"] = [403]
            denied = await client.post("/api/test-scopestack", json={"token": "tok"})
        logs = app.state.request_logger.get_request_logs()

    assert ok.json()["success"] is True
    assert ok.json()["details"]["accountSlug"] == "acme"
    assert denied.status_code == 401
    assert denied.json()["details"]["category"] == "authentication"
    assert [entry.status for entry in logs] == ["started", "completed", "started", "failed"]


@pytest.mark.asyncio
async def test_scopestack_connection_test_needs_token(monkeypatch):
    monkeypatch.delenv("SCOPESTACK_API_TOKEN", raising=False)
    with app_under_test() as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/test-scopestack", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "llm, status",
    [
        (FakeLLM({"test-openrouter": "OK"}), 200),
        (LLMClient(api_key=""), 401),
        (FakeLLM({"test-openrouter": LLMTimeoutError("[test-openrouter] Timed out after 30000ms")}), 408),
        (FakeLLM({"test-openrouter": LLMCallError("upstream 500")}), 502),
    ],
)
async def test_openrouter_connection_test(llm, status):
    with app_under_test({get_llm_client: lambda: llm}) as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/test-openrouter", json={"model": "openai/gpt-4o-mini"})
    assert response.status_code == status
    if status == 200:
        assert response.json()["details"] == {"model": "openai/gpt-4o-mini", "text": "OK"}


@pytest.mark.asyncio
async def test_unexpected_errors_return_500():
    llm = FakeLLM({"test-openrouter": RuntimeError("kaboom")})
    with app_under_test({get_llm_client: lambda: llm}) as app:
        async with asgi_client(app, raise_app_exceptions=False) as client:
            response = await client.post("/api/test-openrouter", json={})
    assert response.status_code == 500
