"""
MODULE_DESCRIPTION: Push Workflow - Generated Content Into ScopeStack

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Drives the seven-step push of a ``GeneratedContent`` into a ScopeStack
account:

    1. Current user (account id and slug)
    2. Find or create the client
    3. Create the project with a generated executive summary
    4. Add the services as custom project services
    5. Questionnaire -> survey -> calculate -> apply (optional)
    6. Project document (optional)
    7. Final project details with pricing

Every ScopeStack call goes through ``with_retry`` using the policy configured
for its operation. Steps 1-3 and 7 are required and propagate their error.
Steps 4-6 record a warning on failure and leave the project in place; retry
callbacks add warnings as well. Re-running a push can create duplicates.
"""

from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from pydantic import Field

from api.utils.debug import print__push_debug
from research_agent.utils.schemas import GeneratedContent
from scopestack.models import ScopeStackModel
from scopestack.retry import RetryOptions, with_retry
from scopestack.transforms import (
    generate_executive_summary,
    transform_questions_to_survey_responses,
    transform_services_to_scopestack,
)

DEFAULT_APP_URL = "https://app.scopestack.io"


class PushRequest(ScopeStackModel):
    content: GeneratedContent
    client_name: Optional[str] = None
    project_name: Optional[str] = None
    questionnaire_tags: Optional[List[str]] = None
    skip_survey: bool = False
    skip_document: bool = False
    use_custom_services: bool = True


class PushResult(ScopeStackModel):
    success: bool = True
    project: Optional[Dict[str, Any]] = None
    client: Optional[Dict[str, Any]] = None
    survey: Optional[Dict[str, Any]] = None
    document: Optional[Dict[str, Any]] = None
    project_services: Optional[List[Dict[str, Any]]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


def _default_project_name(technology: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{technology} Implementation - {today.month}/{today.day}/{today.year}"


class _Runner:
    """Runs client calls under their retry policies and collects warnings."""

    def __init__(self, policies: Mapping[str, RetryOptions], warnings: List[str]):
        self.policies = policies
        self.warnings = warnings

    async def call(self, operation: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        def _on_retry(attempt: int, error: BaseException) -> None:
            message = f"Retrying {operation} after attempt {attempt} failed: {error}"
            print__push_debug(f"🔄 {message}")
            self.warnings.append(message)

        return await with_retry(fn, self.policies.get(operation), on_retry=_on_retry)


async def push_content_to_scopestack(
    client,
    request: PushRequest,
    retry_policies: Optional[Mapping[str, RetryOptions]] = None,
    app_url: str = DEFAULT_APP_URL,
) -> PushResult:
    """Push ``request.content`` through ``client`` (a ``ScopeStackClient``)."""
    content = request.content
    technology = content.technology
    result = PushResult(
        metadata={
            "technology": technology,
            "totalHours": content.total_hours,
            "serviceCount": len(content.services),
            "questionCount": len(content.questions),
            "sourceCount": len(content.sources),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        }
    )
    run = _Runner(retry_policies or {}, result.warnings)

    # STEP 1: Current user
    print__push_debug("🚀 STEP 1: Authenticating with ScopeStack")
    user = await run.call("get_current_user", client.get_current_user)

    # STEP 2: Client
    client_name = request.client_name or f"{technology} Implementation Client"
    print__push_debug(f"🔍 STEP 2: Finding or creating client '{client_name}'")
    matches = await run.call("search_clients", lambda: client.search_clients(client_name))
    if matches:
        customer = matches[0]
        print__push_debug(f"✅ Found existing client {customer.id}")
    else:
        customer = await run.call(
            "create_client", lambda: client.create_client(client_name, user.account_id)
        )
        print__push_debug(f"✅ Created client {customer.id}")
    result.client = {"id": customer.id, "name": customer.name}

    # STEP 3: Project
    project_name = request.project_name or _default_project_name(technology)
    summary = generate_executive_summary(
        technology, content.services, content.sources, request.client_name
    )
    print__push_debug(f"📋 STEP 3: Creating project '{project_name}'")
    project = await run.call(
        "create_project",
        lambda: client.create_project(project_name, customer.id, user.account_id, summary),
    )

    # STEP 4: Services
    if content.services and request.use_custom_services:
        services = transform_services_to_scopestack(content.services)
        print__push_debug(f"📋 STEP 4: Adding {len(services)} services")
        try:
            await run.call(
                "add_services", lambda: client.add_services_to_project(project.id, services)
            )
            result.project_services = [s.model_dump(by_alias=True) for s in services]
        except Exception as e:
            print__push_debug(f"⚠️ Adding services failed: {e}")
            result.warnings.append("Some services failed to add to the project")

    # STEP 5: Survey
    if not request.skip_survey:
        tags = request.questionnaire_tags or ["technology", technology.lower()]
        try:
            print__push_debug(f"📋 STEP 5: Looking up questionnaires tagged '{tags[0]}'")
            questionnaires = await run.call(
                "get_questionnaires", lambda: client.get_questionnaires(tags[0])
            )
            if questionnaires:
                questionnaire = questionnaires[0]
                responses = transform_questions_to_survey_responses(content.questions)
                survey = await run.call(
                    "create_survey",
                    lambda: client.create_survey(
                        project.id, questionnaire.id, project_name, responses, user.account_id
                    ),
                )
                status = await run.call("calculate_survey", lambda: client.calculate_survey(survey.id))
                await run.call(
                    "apply_survey_recommendations",
                    lambda: client.apply_survey_recommendations(survey.id),
                )
                result.survey = {"id": survey.id, "name": survey.name, "status": status or survey.status}
            else:
                result.warnings.append("No questionnaires found for survey creation")
        except Exception as e:
            print__push_debug(f"⚠️ Survey creation failed: {e}")
            result.warnings.append("Survey creation failed")

    # STEP 6: Document
    if not request.skip_document:
        try:
            print__push_debug("📄 STEP 6: Generating project document")
            document = await run.call(
                "create_document", lambda: client.create_project_document(project.id)
            )
            result.document = {
                "id": document.id,
                "url": document.document_url,
                "status": document.status,
            }
        except Exception as e:
            print__push_debug(f"⚠️ Document generation failed: {e}")
            result.warnings.append("Document generation failed")

    # STEP 7: Project details
    print__push_debug("📊 STEP 7: Fetching final project details")
    details = await run.call("get_project_details", lambda: client.get_project_details(project.id))
    result.project = {
        "id": details.id,
        "name": details.name or project.name,
        "status": details.status,
        "url": f"{app_url.rstrip('/')}/{user.account_slug}/projects/{details.id}",
        "executiveSummary": details.executive_summary,
        "pricing": {
            "revenue": details.contract_revenue,
            "cost": details.contract_cost,
            "margin": details.contract_margin,
        },
    }
    print__push_debug(f"✅ Push complete with {len(result.warnings)} warning(s)")
    return result
