"""Endpoint tests for POST /api/research (Server-Sent Events)."""

import pytest

from api.dependencies import get_llm_client
from research_agent.utils.llm_client import LLMClient
from tests.helpers import FakeLLM, app_under_test, asgi_client, parse_sse


@pytest.mark.asyncio
async def test_research_without_api_key_streams_complete_scope():
    with app_under_test({get_llm_client: lambda: LLMClient(api_key="")}) as app:
        async with asgi_client(app) as client:
            response = await client.post(
                "/api/research", json={"input": "Office 365 migration for 100 mailboxes"}
            )
        logs = app.state.request_logger.get_request_logs()

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"

    events = parse_sse(response.text)
    assert events[0] == {
        "type": "step",
        "stepId": "parse",
        "status": "active",
        "progress": 10,
        "model": events[0]["model"],
    }
    complete = events[-1]
    assert complete["type"] == "complete"
    content = complete["content"]
    assert len(content["services"]) >= 10
    assert all(len(service["subservices"]) == 3 for service in content["services"])
    assert content["totalHours"] == sum(service["hours"] for service in content["services"])

    assert [entry.status for entry in logs] == ["started", "completed"]
    assert logs[-1].request_type == "research"
    assert logs[-1].metadata == {"serviceCount": len(content["services"])}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, detail",
    [
        ({}, "Input is required"),
        ({"input": "   "}, "Input is required"),
        ({"input": "ab"}, "Input must be at least 3 characters"),
    ],
)
async def test_research_rejects_bad_input_before_streaming(body, detail):
    llm = FakeLLM()
    with app_under_test({get_llm_client: lambda: llm}) as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/research", json=body)
        logs = app.state.request_logger.get_request_logs()

    assert response.status_code == 400
    assert response.json()["detail"] == detail
    assert llm.calls == []
    assert logs == []


@pytest.mark.asyncio
async def test_research_request_validation_error():
    with app_under_test() as app:
        async with asgi_client(app) as client:
            response = await client.post("/api/research", json={"input": ["not", "text"]})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"


@pytest.mark.asyncio
async def test_research_honours_model_overrides():
    llm = FakeLLM()
    with app_under_test({get_llm_client: lambda: llm}) as app:
        async with asgi_client(app) as client:
            response = await client.post(
                "/api/research",
                json={"input": "Cisco Meraki rollout", "models": {"parsing": "test/parser"}},
            )

    events = parse_sse(response.text)
    assert events[0]["model"] == "test/parser"
    assert llm.calls[0]["model"] == "test/parser"
    assert events[-1]["type"] == "complete"
