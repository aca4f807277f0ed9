"""Tests for the push workflow and its content transforms."""

from datetime import date

import pytest

from research_agent.utils.schemas import Question, QuestionOption, Source
from scopestack.errors import ScopeStackAPIError
from scopestack.push import (
    PushRequest,
    _default_project_name,
    push_content_to_scopestack,
)
from scopestack.transforms import (
    generate_executive_summary,
    transform_questions_to_survey_responses,
    transform_services_to_scopestack,
)
from tests.helpers import NO_DELAY_POLICIES, FakeScopeStackAPI, make_generated_content

FULL_FLOW = [
    "GET /v1/me",
    "GET /v1/clients",
    "POST /v1/clients",
    "GET /v1/rate-tables",
    "GET /v1/payment-terms",
    "POST /v1/projects",
]


# ==============================================================================
# TRANSFORMS
# ==============================================================================
def test_transform_services_positions_and_quantity():
    content = make_generated_content(3)
    services = transform_services_to_scopestack(content.services)

    assert [service.position for service in services] == [1, 2, 3]
    assert all(service.quantity == service.hours == 12 for service in services)
    assert services[0].service_description == "Narrative for package 1"
    assert services[0].phase == "Planning"


def test_survey_responses_default_answers():
    questions = [
        Question(id="q1", slug="users", question="Users?", options=[QuestionOption(key="1-100", value=1, default=True)]),
        Question(id="q2", slug="sites", question="Sites?", type="number"),
        Question(id="q3", slug="sso", question="SSO?", type="boolean"),
        Question(id="q4", slug="notes", question="Anything else?", type="text"),
    ]
    assert transform_questions_to_survey_responses(questions) == {
        "users": {"key": "1-100", "value": 1, "default": True},
        "sites": 1,
        "sso": True,
        "notes": "Anything else?",
    }


def test_executive_summary_lists_services():
    content = make_generated_content(2, "Microsoft Teams")
    summary = generate_executive_summary("Microsoft Teams", content.services, content.sources, "Contoso")

    assert summary.startswith("This project proposes a comprehensive Microsoft Teams implementation for Contoso")
    assert "2 key services across 2 phases" in summary
    assert "**PROPOSED SERVICES:**" in summary
    assert "1. **Microsoft Teams Service 1** (12 hours) - Planning Phase" in summary
    assert "*Key Assumptions:* Client provides access" in summary
    assert "industry best practices" in summary

    low = generate_executive_summary(
        "Teams", content.services, [Source(url="https://a.com", title="A", credibility="low")]
    )
    assert "industry best practices" not in low
    assert "for the client" in low


def test_default_project_name():
    assert _default_project_name("Office 365", date(2025, 3, 7)) == "Office 365 Implementation - 3/7/2025"


# ==============================================================================
# WORKFLOW
# ==============================================================================
@pytest.mark.asyncio
async def test_full_push_creates_everything():
    api = FakeScopeStackAPI()
    content = make_generated_content(10)

    async with api.client() as client:
        result = await push_content_to_scopestack(
            client,
            PushRequest(content=content, project_name="O365 Rollout"),
            NO_DELAY_POLICIES,
            app_url="https://app.scopestack.test",
        )

    assert result.success is True
    assert result.warnings == []
    assert api.calls[: len(FULL_FLOW)] == FULL_FLOW
    assert api.calls.count("POST /v1/project-services") == 10
    assert result.client == {"id": "101", "name": "Office 365 Implementation Client"}
    assert result.project["id"] == "555"
    assert result.project["url"] == "https://app.scopestack.test/acme/projects/555"
    assert result.project["pricing"] == {"revenue": 24000.0, "cost": 15000.0, "margin": 0.375}
    assert result.survey == {"id": "sv1", "name": "O365 Rollout Survey", "status": "calculated"}
    assert result.document["url"] == "https://files.scopestack.test/d1.pdf"
    assert len(result.project_services) == 10
    assert result.metadata["serviceCount"] == 10
    assert result.metadata["totalHours"] == 120

    [project_body] = api.bodies("POST /v1/projects")
    assert project_body["data"]["attributes"]["project-name"] == "O365 Rollout"
    assert "**PROPOSED SERVICES:**" in project_body["data"]["attributes"]["executive-summary"]
    [survey_body] = api.bodies("POST /v1/surveys")
    assert survey_body["data"]["attributes"]["responses"]["has_sso"] is True
    assert api.requests[-1].url.path == "/acme/v1/projects/555"

    wire = result.model_dump(by_alias=True, exclude_none=True)
    assert "projectServices" in wire


@pytest.mark.asyncio
async def test_existing_client_is_reused():
    api = FakeScopeStackAPI(existing_clients=[{"id": "77", "attributes": {"name": "Contoso"}}])
    async with api.client() as client:
        result = await push_content_to_scopestack(
            client,
            PushRequest(content=make_generated_content(), client_name="Contoso", skip_survey=True, skip_document=True),
            NO_DELAY_POLICIES,
        )

    assert result.client == {"id": "77", "name": "Contoso"}
    assert "POST /v1/clients" not in api.calls
    assert "POST /v1/surveys" not in api.calls
    assert "POST /v1/project-documents" not in api.calls
    assert result.survey is None and result.document is None


@pytest.mark.asyncio
async def test_optional_step_failures_become_warnings():
    api = FakeScopeStackAPI(
        questionnaires=[],
        failures={"POST /v1/project-services": [500, 500], "POST /v1/project-documents": [500, 500]},
    )
    async with api.client() as client:
        result = await push_content_to_scopestack(
            client, PushRequest(content=make_generated_content()), NO_DELAY_POLICIES
        )

    assert result.success is True
    assert "Some services failed to add to the project" in result.warnings
    assert "No questionnaires found for survey creation" in result.warnings
    assert "Document generation failed" in result.warnings
    assert result.project_services is None
    assert result.project["id"] == "555"


@pytest.mark.asyncio
async def test_survey_failure_is_a_warning():
    api = FakeScopeStackAPI(failures={"POST /v1/surveys": [500, 500]})
    async with api.client() as client:
        result = await push_content_to_scopestack(
            client,
            PushRequest(content=make_generated_content(), skip_document=True, questionnaire_tags=["o365"]),
            NO_DELAY_POLICIES,
        )

    assert "Survey creation failed" in result.warnings
    questionnaire_request = next(r for r in api.requests if r.url.path.endswith("/v1/questionnaires"))
    assert questionnaire_request.url.params["filter[tag-list]"] == "o365"


@pytest.mark.asyncio
async def test_retried_calls_are_reported_as_warnings():
    api = FakeScopeStackAPI(failures={"POST /v1/projects": [503]})
    async with api.client() as client:
        result = await push_content_to_scopestack(
            client,
            PushRequest(content=make_generated_content(), skip_survey=True, skip_document=True),
            NO_DELAY_POLICIES,
        )

    assert result.project["id"] == "555"
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("Retrying create_project after attempt 1 failed")


@pytest.mark.asyncio
async def test_survey_calculation_steps_follow_their_retry_policies():
    api = FakeScopeStackAPI(
        failures={
            "PUT /v1/surveys/sv1/calculate": [502],
            "PUT /v1/surveys/sv1/apply": [503],
        }
    )
    async with api.client() as client:
        result = await push_content_to_scopestack(
            client,
            PushRequest(content=make_generated_content(), skip_document=True),
            NO_DELAY_POLICIES,
        )

    assert result.survey["status"] == "calculated"
    assert api.calls.count("PUT /v1/surveys/sv1/calculate") == 2
    assert api.calls.count("PUT /v1/surveys/sv1/apply") == 2
    assert [warning.split(" after")[0] for warning in result.warnings] == [
        "Retrying calculate_survey",
        "Retrying apply_survey_recommendations",
    ]


@pytest.mark.asyncio
async def test_required_step_failure_raises():
    api = FakeScopeStackAPI(failures={"GET /v1/me": [401, 401]})
    async with api.client() as client:
        with pytest.raises(ScopeStackAPIError) as exc_info:
            await push_content_to_scopestack(
                client, PushRequest(content=make_generated_content()), NO_DELAY_POLICIES
            )
    assert exc_info.value.status_code == 401
    assert api.calls == ["GET /v1/me", "GET /v1/me"]
