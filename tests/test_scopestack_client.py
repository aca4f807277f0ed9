"""Tests for the ScopeStack REST client against an in-memory API."""

import httpx
import pytest

from scopestack.client import DOCUMENT_MAX_POLLS, SURVEY_MAX_POLLS, ScopeStackClient
from scopestack.errors import (
    AUTHENTICATION,
    GENERIC,
    VALIDATION,
    ScopeStackAPIError,
    classify_scopestack_error,
)
from scopestack.models import OAuthSession, ScopeStackService
from tests.helpers import TEST_BASE_URL, FakeScopeStackAPI


@pytest.mark.asyncio
async def test_account_slug_resolved_once_and_headers_sent():
    api = FakeScopeStackAPI(account_slug="acme")
    async with api.client(token="abc") as client:
        await client.get_default_rate_table()
        await client.get_default_payment_term()

    assert api.calls == ["GET /v1/me", "GET /v1/rate-tables", "GET /v1/payment-terms"]
    first = api.requests[0]
    assert str(first.url) == f"{TEST_BASE_URL}/v1/me"
    assert str(api.requests[1].url).startswith(f"{TEST_BASE_URL}/acme/v1/rate-tables")
    assert first.headers["Authorization"] == "Bearer abc"
    assert first.headers["Accept"] == "application/vnd.api+json"


@pytest.mark.asyncio
async def test_from_session_uses_session_slug():
    api = FakeScopeStackAPI(account_slug="contoso")
    session = OAuthSession(
        access_token="tok", expires_at=0, account_slug="contoso", account_id="1", user_name="U"
    )
    client = ScopeStackClient.from_session(
        session, base_url=TEST_BASE_URL, http_client=httpx.AsyncClient(transport=api.transport())
    )
    assert await client.get_default_rate_table() == "7"
    assert api.calls == ["GET /v1/rate-tables"]


@pytest.mark.asyncio
async def test_error_status_raises_with_body():
    api = FakeScopeStackAPI(failures={"POST /v1/clients": [422]})
    client = api.client(account_slug="acme")

    with pytest.raises(ScopeStackAPIError) as exc_info:
        await client.create_client("Contoso", "42")

    error = exc_info.value
    assert error.status_code == 422
    assert error.operation == "create_client"
    assert error.body == {"errors": [{"title": "forced 422"}]}
    assert "HTTP 422" in str(error)
    assert classify_scopestack_error(error) == (VALIDATION, 400)


@pytest.mark.asyncio
async def test_transport_error_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = ScopeStackClient(
        "tok",
        base_url=TEST_BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    with pytest.raises(ScopeStackAPIError) as exc_info:
        await client.get_current_user()
    assert exc_info.value.status_code is None
    assert classify_scopestack_error(exc_info.value) == (GENERIC, 502)


@pytest.mark.parametrize(
    "status, expected",
    [(401, (AUTHENTICATION, 401)), (403, (AUTHENTICATION, 401)), (404, (VALIDATION, 400)), (500, (GENERIC, 502))],
)
def test_classify_scopestack_error(status, expected):
    assert classify_scopestack_error(ScopeStackAPIError("x", status_code=status)) == expected
    assert classify_scopestack_error(RuntimeError("x")) == (GENERIC, 502)


@pytest.mark.asyncio
async def test_search_clients_maps_included_contacts():
    api = FakeScopeStackAPI()
    client = api.client(account_slug="acme")
    original_handler = api.handler

    def handler(request):
        if request.method == "GET" and request.url.path.endswith("/v1/clients"):
            return httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": 9,
                            "attributes": {"name": "Contoso", "msa-date": "2024-01-01"},
                            "relationships": {"contacts": {"data": [{"id": "c1", "type": "contacts"}]}},
                        }
                    ],
                    "included": [
                        {"id": "c1", "type": "contacts", "attributes": {"name": "Pat", "email": "pat@contoso.com"}}
                    ],
                },
            )
        return original_handler(request)

    client._http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    [record] = await client.search_clients("Contoso")

    assert record.id == "9"
    assert record.msa_date == "2024-01-01"
    assert record.contacts[0].name == "Pat"
    assert record.contacts[0].email == "pat@contoso.com"


@pytest.mark.asyncio
async def test_create_project_links_defaults_and_adds_services():
    api = FakeScopeStackAPI()
    client = api.client(account_slug="acme")
    services = [
        ScopeStackService(name="Discovery", description="Assess", hours=16, quantity=16, phase="Planning", position=1),
        ScopeStackService(name="Build", description="Configure", hours=40, quantity=40, phase="Implementation", position=2),
    ]

    project = await client.create_project("Teams Rollout", "101", "42", "Summary", services)

    assert project.id == "555"
    assert project.name == "Teams Rollout"
    [body] = api.bodies("POST /v1/projects")
    relationships = body["data"]["relationships"]
    assert relationships["rate-table"] == {"data": {"type": "rate-tables", "id": "7"}}
    assert "payment-term" not in relationships
    assert body["data"]["attributes"]["executive-summary"] == "Summary"
    service_bodies = api.bodies("POST /v1/project-services")
    assert [b["data"]["attributes"]["position"] for b in service_bodies] == [1, 2]
    assert service_bodies[1]["data"]["attributes"]["total-hours"] == 40


@pytest.mark.asyncio
async def test_calculate_survey_polls_until_done():
    api = FakeScopeStackAPI(survey_statuses=["calculating", "calculating", "calculated"])
    client = api.client(account_slug="acme")

    assert await client.calculate_survey("sv1") == "calculated"
    assert api.calls.count("GET /v1/surveys/sv1") == 3
    assert api.calls[0] == "PUT /v1/surveys/sv1/calculate"


@pytest.mark.asyncio
async def test_calculate_survey_gives_up_after_max_polls():
    api = FakeScopeStackAPI(survey_statuses=["calculating"])
    client = api.client(account_slug="acme")

    assert await client.calculate_survey("sv1") == "calculating"
    assert api.calls.count("GET /v1/surveys/sv1") == SURVEY_MAX_POLLS


@pytest.mark.asyncio
async def test_create_project_document_uses_first_template_and_polls_url():
    api = FakeScopeStackAPI(
        templates=[{"id": "t9", "attributes": {"name": "SOW"}}, {"id": "t10", "attributes": {"name": "Other"}}]
    )
    client = api.client(account_slug="acme")

    document = await client.create_project_document("555")

    assert document.template_id == "t9"
    assert document.document_url == "https://files.scopestack.test/d1.pdf"
    [body] = api.bodies("POST /v1/project-documents")
    assert body["data"]["attributes"]["template-id"] == "t9"
    assert api.calls.count("GET /v1/project-documents") == 1
    assert DOCUMENT_MAX_POLLS >= 1


@pytest.mark.asyncio
async def test_create_project_document_without_templates_fails():
    api = FakeScopeStackAPI(templates=[])
    client = api.client(account_slug="acme")

    with pytest.raises(ScopeStackAPIError, match="No document templates available"):
        await client.create_project_document("555")
    assert "POST /v1/project-documents" not in api.calls


@pytest.mark.asyncio
async def test_get_project_details_reads_pricing():
    api = FakeScopeStackAPI()
    details = await api.client(account_slug="acme").get_project_details("555")
    assert details.contract_revenue == 24000.0
    assert details.contract_margin == 0.375


@pytest.mark.asyncio
@pytest.mark.parametrize("data", [None, [], "unexpected"])
async def test_missing_resource_documents_are_handled(data):
    def handler(request):
        return httpx.Response(200, json={"data": data})

    client = ScopeStackClient(
        "tok",
        base_url=TEST_BASE_URL,
        account_slug="acme",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(ScopeStackAPIError) as exc_info:
        await client.create_client("Contoso", "42")
    assert exc_info.value.operation == "create_client"
    assert classify_scopestack_error(exc_info.value) == (GENERIC, 502)

    assert await client.search_clients("Contoso") == []
    assert await client.get_questionnaires("o365") == []
    details = await client.get_project_details("555")
    assert details.id == "555"
    assert details.contract_revenue is None
