"""Test helpers and utilities for the test suite."""

import json
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
from dotenv import load_dotenv

load_dotenv()

from api.utils.rate_limiting import FixedWindowRateLimiter
from api.utils.request_logger import RequestLogger
from research_agent.utils.llm_client import LLMCallError
from research_agent.utils.schemas import (
    GeneratedContent,
    Question,
    QuestionOption,
    Service,
    Source,
    Subservice,
)
from scopestack.client import ScopeStackClient
from scopestack.oauth import ScopeStackOAuthService
from scopestack.retry import RetryOptions

TEST_BASE_URL = "https://api.scopestack.test"
NO_DELAY_POLICIES = {
    name: RetryOptions(max_attempts=2, delay_ms=0, backoff=False)
    for name in (
        "get_current_user",
        "search_clients",
        "create_client",
        "create_project",
        "add_services",
        "get_questionnaires",
        "create_survey",
        "calculate_survey",
        "apply_survey_recommendations",
        "create_document",
        "get_project_details",
    )
}


class BaseTestResults:
    """Track endpoint results across a test module."""

    def __init__(self, required_endpoints: set = None):
        self.results: List[Dict[str, Any]] = []
        self.errors: List[Dict[str, Any]] = []
        self.required_endpoints = required_endpoints or set()

    def add_result(self, test_id: str, endpoint: str, status_code: int, response_data: Any):
        self.results.append(
            {
                "test_id": test_id,
                "endpoint": endpoint,
                "status_code": status_code,
                "response_data": response_data,
                "timestamp": datetime.now().isoformat(),
            }
        )

    def add_error(self, test_id: str, endpoint: str, error: Exception):
        self.errors.append(
            {
                "test_id": test_id,
                "endpoint": endpoint,
                "error": str(error),
                "error_type": type(error).__name__,
                "timestamp": datetime.now().isoformat(),
            }
        )
        print(f"❌ Test {test_id} failed: {str(error)}")

    def missing_endpoints(self) -> set:
        return self.required_endpoints - {result["endpoint"] for result in self.results}


# ==============================================================================
# CONTENT FIXTURES
# ==============================================================================
def make_generated_content(
    service_count: int = 10, technology: str = "Office 365"
) -> GeneratedContent:
    """A valid GeneratedContent with ``service_count`` services."""
    services = []
    for index in range(service_count):
        services.append(
            Service(
                phase="Implementation" if index else "Planning",
                name=f"{technology} Service {index + 1}",
                description=f"Delivery work package {index + 1}",
                hours=12,
                service_description=f"Narrative for package {index + 1}",
                key_assumptions="Client provides access",
                client_responsibilities="Provide an SME",
                out_of_scope="Hardware",
                subservices=[
                    Subservice(name=f"Task {index + 1}.{n}", description="Task work", hours=4)
                    for n in range(1, 4)
                ],
            )
        )
    return GeneratedContent(
        technology=technology,
        questions=[
            Question(
                id="q1",
                slug="user_count",
                question="How many users?",
                options=[
                    QuestionOption(key="1-100", value=1, default=True),
                    QuestionOption(key="101+", value=2),
                ],
            ),
            Question(id="q2", slug="has_sso", question="Is SSO in place?", type="boolean"),
            Question(id="q3", slug="site_count", question="How many sites?", type="number"),
        ],
        services=services,
        sources=[
            Source(
                url="https://learn.microsoft.com/en-us/microsoft-365/",
                title="Microsoft 365 documentation",
                credibility="high",
            )
        ],
    ).recompute_total_hours()


def parse_sse(text: str) -> List[Dict[str, Any]]:
    """Decode ``data:`` frames from a Server-Sent Events body."""
    return [
        json.loads(line[len("data: "):])
        for line in text.splitlines()
        if line.startswith("data: ")
    ]


# ==============================================================================
# FAKE LLM
# ==============================================================================
class FakeLLM:
    """Stands in for LLMClient; answers per pipeline step.

    ``responses`` maps a step name to a string, an exception, or a list of
    either consumed one call at a time. Steps without an entry fail.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, configured: bool = True):
        self.responses = dict(responses or {})
        self.is_configured = configured
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, prompt, model, *, timeout, temperature=0.7, max_tokens=4000, step="llm"):
        self.calls.append({"step": step, "model": model, "prompt": prompt, "timeout": timeout})
        response = self.responses.get(step)
        if isinstance(response, list):
            response = response.pop(0) if response else None
        if response is None:
            raise LLMCallError(f"[{step}] no canned response")
        if isinstance(response, Exception):
            raise response
        return response

    def steps(self) -> List[str]:
        return [call["step"] for call in self.calls]


# ==============================================================================
# FAKE SCOPESTACK API
# ==============================================================================
class FakeScopeStackAPI:
    """In-memory ScopeStack served through ``httpx.MockTransport``.

    ``failures`` maps ``"METHOD /v1/path"`` (account slug removed) to a list
    of status codes returned, one per call, before the normal response.
    """

    def __init__(
        self,
        account_slug: str = "acme",
        existing_clients: Optional[List[Dict[str, Any]]] = None,
        questionnaires: Optional[List[Dict[str, Any]]] = None,
        survey_statuses: Optional[List[str]] = None,
        templates: Optional[List[Dict[str, Any]]] = None,
        failures: Optional[Dict[str, List[int]]] = None,
    ):
        self.account_slug = account_slug
        self.existing_clients = existing_clients or []
        self.questionnaires = (
            [{"id": "q1", "attributes": {"name": "Technology Survey", "tag-list": ["technology"]}}]
            if questionnaires is None
            else questionnaires
        )
        self.survey_statuses = list(survey_statuses or ["calculated"])
        self.templates = (
            [{"id": "t1", "attributes": {"name": "Statement of Work"}}]
            if templates is None
            else templates
        )
        self.failures = {key: list(value) for key, value in (failures or {}).items()}
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> List[str]:
        return [self._route(request) for request in self.requests]

    def _route(self, request: httpx.Request) -> str:
        path = request.url.path
        prefix = f"/{self.account_slug}/"
        if path.startswith(prefix):
            path = path[len(prefix) - 1:]
        return f"{request.method} {path}"

    def bodies(self, route: str) -> List[Dict[str, Any]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if self._route(request) == route and request.content
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._route(request)
        queued = self.failures.get(route)
        if queued:
            status = queued.pop(0)
            return httpx.Response(status, json={"errors": [{"title": f"forced {status}"}]})

        if route == "GET /v1/me":
            return httpx.Response(
                200,
                json={
                    "data": {
                        "attributes": {
                            "account-id": 42,
                            "account-slug": self.account_slug,
                            "name": "Test User",
                            "email": "test_user@example.com",
                        }
                    }
                },
            )
        if route == "GET /v1/clients":
            return httpx.Response(200, json={"data": self.existing_clients, "included": []})
        if route == "POST /v1/clients":
            name = json.loads(request.content)["data"]["attributes"]["name"]
            return httpx.Response(201, json={"data": {"id": "101", "attributes": {"name": name}}})
        if route == "GET /v1/rate-tables":
            return httpx.Response(200, json={"data": [{"id": "7", "attributes": {"default": True}}]})
        if route == "GET /v1/payment-terms":
            return httpx.Response(200, json={"data": [{"id": "8", "attributes": {"default": False}}]})
        if route == "POST /v1/projects":
            attributes = json.loads(request.content)["data"]["attributes"]
            return httpx.Response(
                201,
                json={"data": {"id": "555", "attributes": {**attributes, "status": "building"}}},
            )
        if route == "POST /v1/project-services":
            return httpx.Response(201, json={"data": {"id": f"ps{len(self.requests)}"}})
        if route == "GET /v1/questionnaires":
            return httpx.Response(200, json={"data": self.questionnaires})
        if route == "POST /v1/surveys":
            attributes = json.loads(request.content)["data"]["attributes"]
            return httpx.Response(
                201,
                json={"data": {"id": "sv1", "attributes": {"name": attributes["name"], "status": "pending"}}},
            )
        if re.fullmatch(r"PUT /v1/surveys/\w+/(calculate|apply)", route):
            return httpx.Response(204)
        if re.fullmatch(r"GET /v1/surveys/\w+", route):
            status = self.survey_statuses.pop(0) if len(self.survey_statuses) > 1 else self.survey_statuses[0]
            return httpx.Response(200, json={"data": {"id": "sv1", "attributes": {"status": status}}})
        if route == "GET /v1/document-templates":
            return httpx.Response(200, json={"data": self.templates})
        if route == "POST /v1/project-documents":
            return httpx.Response(201, json={"data": {"id": "d1", "attributes": {"status": "queued"}}})
        if route == "GET /v1/project-documents":
            return httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": "d1",
                            "attributes": {
                                "status": "finished",
                                "document-url": "https://files.scopestack.test/d1.pdf",
                            },
                        }
                    ]
                },
            )
        if re.fullmatch(r"GET /v1/projects/\w+", route):
            return httpx.Response(
                200,
                json={
                    "data": {
                        "id": "555",
                        "attributes": {
                            "project-name": "Office 365 Implementation",
                            "status": "building",
                            "executive-summary": "Summary",
                            "contract-revenue": 24000.0,
                            "contract-cost": 15000.0,
                            "contract-margin": 0.375,
                        },
                    }
                },
            )
        return httpx.Response(404, json={"errors": [{"title": f"no route for {route}"}]})

    def client(self, token: str = "test-token", account_slug: Optional[str] = None) -> ScopeStackClient:
        return ScopeStackClient(
            token,
            base_url=TEST_BASE_URL,
            account_slug=account_slug,
            http_client=httpx.AsyncClient(transport=self.transport()),
            poll_interval=0,
        )

    def client_factory(self):
        """Drop-in for ``get_scopestack_client_factory``'s return value."""

        def _factory(token: str, base_url: Optional[str] = None, account_slug: Optional[str] = None):
            client = self.client(token, account_slug=account_slug)
            if base_url:
                client.base_url = base_url.rstrip("/")
            return client

        return _factory


# ==============================================================================
# APP UNDER TEST
# ==============================================================================
@contextmanager
def app_under_test(overrides: Optional[Dict[Any, Any]] = None, rate_limit: int = 1000):
    """The FastAPI app with fresh process state and dependency overrides.

    ASGITransport does not run the lifespan, so state is set here.
    """
    from api.main import app

    app.state.request_logger = RequestLogger()
    app.state.rate_limiter = FixedWindowRateLimiter(rate_limit, 60)
    app.dependency_overrides.update(overrides or {})
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


def asgi_client(app, raise_app_exceptions: bool = True) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
        base_url="http://testserver",
    )


# ==============================================================================
# FAKE OAUTH SERVER
# ==============================================================================
OAUTH_TOKEN_URL = "https://app.scopestack.test/oauth/token"


class FakeOAuthServer:
    """Token endpoint plus ``/v1/me`` for ScopeStackOAuthService tests."""

    def __init__(self, token_status: int = 200, expires_in: int = 3600):
        self.token_status = token_status
        self.expires_in = expires_in
        self.forms: List[Dict[str, str]] = []
        self.me_tokens: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == OAUTH_TOKEN_URL:
            self.forms.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_grant")
            return httpx.Response(
                200,
                json={"access_token": "new-access", "refresh_token": "new-refresh", "expires_in": self.expires_in},
            )
        if request.url.path == "/v1/me":
            self.me_tokens.append(request.headers["Authorization"])
            return httpx.Response(
                200,
                json={"data": {"attributes": {"account-id": 7, "account-slug": "acme", "name": "Ada", "email": "ada@acme.io"}}},
            )
        return httpx.Response(404)

    def service(self, client_id: str = "cid", **kwargs) -> ScopeStackOAuthService:
        return ScopeStackOAuthService(
            client_id=client_id,
            client_secret="secret",
            token_url=OAUTH_TOKEN_URL,
            api_base_url=TEST_BASE_URL,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)),
            **kwargs,
        )
