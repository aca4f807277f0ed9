"""
MODULE_DESCRIPTION: ScopeStack API Client - Async JSON:API Wrapper

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Thin async wrapper over the ScopeStack REST API (JSON:API media type). Each
public method performs one HTTP call, plus polling where the API finishes
work asynchronously (survey calculation, document generation).

Conventions:
    - ``Authorization: Bearer <token>`` and ``application/vnd.api+json``
      content negotiation on every request
    - Account-scoped paths are ``{base}/{account_slug}/v1/...``; only
      ``/v1/me`` is unscoped. A missing slug is resolved via ``/v1/me`` on
      first use
    - Any non-2xx response or transport error raises ``ScopeStackAPIError``
      with the status and body. The client never retries; callers wrap calls
      in ``scopestack.retry.with_retry`` with a per-operation policy

Usage:
    async with ScopeStackClient(token) as client:
        user = await client.get_current_user()
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from api.utils.debug import print__scopestack_debug
from scopestack.errors import ScopeStackAPIError
from scopestack.models import (
    OAuthSession,
    ScopeStackClientRecord,
    ScopeStackContact,
    ScopeStackDocument,
    ScopeStackProject,
    ScopeStackQuestionnaire,
    ScopeStackService,
    ScopeStackSurvey,
    ScopeStackUser,
)

JSON_API = "application/vnd.api+json"
DEFAULT_BASE_URL = "https://api.scopestack.io"

SURVEY_MAX_POLLS = 10
DOCUMENT_MAX_POLLS = 20


def _relationship(kind: str, record_id: Any) -> Dict[str, Any]:
    return {"data": {"type": kind, "id": str(record_id)}}


def _resource(payload: Dict[str, Any], operation: Optional[str] = None) -> Dict[str, Any]:
    """The primary resource object of a JSON:API document.

    With ``operation`` set the resource is required and its absence raises.
    """
    data = payload.get("data")
    if isinstance(data, dict):
        return data
    if operation:
        raise ScopeStackAPIError(
            f"{operation} returned no resource", body=payload, operation=operation
        )
    return {}


def _records(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    data = payload.get("data")
    return [record for record in data if isinstance(record, dict)] if isinstance(data, list) else []


class ScopeStackClient:
    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        account_slug: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = 2.0,
        timeout: float = 30.0,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.account_slug = account_slug or None
        self.poll_interval = poll_interval
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_session(cls, session: OAuthSession, **kwargs) -> "ScopeStackClient":
        return cls(session.access_token, account_slug=session.account_slug, **kwargs)

    async def __aenter__(self) -> "ScopeStackClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ==========================================================================
    # TRANSPORT
    # ==========================================================================
    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": JSON_API,
            "Accept": JSON_API,
        }

    async def _ensure_account_slug(self) -> str:
        if not self.account_slug:
            user = await self.get_current_user()
            self.account_slug = user.account_slug
        return self.account_slug

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        scoped: bool = True,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if scoped:
            path = f"/{await self._ensure_account_slug()}{path}"
        url = f"{self.base_url}{path}"
        print__scopestack_debug(f"🌐 {method} {url}")

        try:
            response = await self._http.request(
                method, url, headers=self.headers, params=params, json=json
            )
        except httpx.HTTPError as exc:
            raise ScopeStackAPIError(
                f"{operation} failed: {exc}", operation=operation
            ) from exc

        if not response.is_success:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            print__scopestack_debug(
                f"❌ {operation}: HTTP {response.status_code} - {str(body)[:300]}"
            )
            raise ScopeStackAPIError(
                f"{operation} failed",
                status_code=response.status_code,
                body=body,
                operation=operation,
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    # ==========================================================================
    # ACCOUNT AND CLIENTS
    # ==========================================================================
    async def get_current_user(self) -> ScopeStackUser:
        payload = await self._request("GET", "/v1/me", "get_current_user", scoped=False)
        attributes = _resource(payload).get("attributes") or {}
        user = ScopeStackUser(
            account_id=str(attributes.get("account-id", "")),
            account_slug=attributes.get("account-slug", ""),
            user_name=attributes.get("name", ""),
            email=attributes.get("email"),
        )
        if not self.account_slug:
            self.account_slug = user.account_slug or None
        return user

    async def search_clients(self, name: str) -> List[ScopeStackClientRecord]:
        payload = await self._request(
            "GET",
            "/v1/clients",
            "search_clients",
            params={"filter[active]": "true", "filter[name]": name, "include": "contacts"},
        )
        contacts = {
            item["id"]: item
            for item in payload.get("included") or []
            if item.get("type") == "contacts"
        }
        clients = []
        for record in _records(payload):
            attributes = record.get("attributes") or {}
            refs = ((record.get("relationships") or {}).get("contacts") or {}).get("data") or []
            clients.append(
                ScopeStackClientRecord(
                    id=str(record["id"]),
                    name=attributes.get("name", ""),
                    msa_date=attributes.get("msa-date"),
                    contacts=[
                        ScopeStackContact(
                            id=str(contacts[ref["id"]]["id"]),
                            name=contacts[ref["id"]]["attributes"].get("name", ""),
                            email=contacts[ref["id"]]["attributes"].get("email"),
                            phone=contacts[ref["id"]]["attributes"].get("phone"),
                            title=contacts[ref["id"]]["attributes"].get("title"),
                        )
                        for ref in refs
                        if ref.get("id") in contacts
                    ],
                )
            )
        return clients

    async def create_client(self, name: str, account_id: str) -> ScopeStackClientRecord:
        payload = await self._request(
            "POST",
            "/v1/clients",
            "create_client",
            json={
                "data": {
                    "type": "clients",
                    "attributes": {"name": name, "active": True},
                    "relationships": {"account": _relationship("accounts", account_id)},
                }
            },
        )
        data = _resource(payload, "create_client")
        attributes = data.get("attributes") or {}
        return ScopeStackClientRecord(
            id=str(data.get("id")),
            name=attributes.get("name", name),
            msa_date=attributes.get("msa-date"),
        )

    async def _default_id(self, path: str, operation: str) -> Optional[str]:
        payload = await self._request(
            "GET", path, operation, params={"filter[active]": "true"}
        )
        for record in _records(payload):
            if (record.get("attributes") or {}).get("default") is True:
                return str(record["id"])
        return None

    async def get_default_rate_table(self) -> Optional[str]:
        return await self._default_id("/v1/rate-tables", "get_default_rate_table")

    async def get_default_payment_term(self) -> Optional[str]:
        return await self._default_id("/v1/payment-terms", "get_default_payment_term")

    # ==========================================================================
    # PROJECTS AND SERVICES
    # ==========================================================================
    async def create_project(
        self,
        name: str,
        client_id: str,
        account_id: str,
        executive_summary: str = "",
        services: Optional[List[ScopeStackService]] = None,
    ) -> ScopeStackProject:
        rate_table_id = await self.get_default_rate_table()
        payment_term_id = await self.get_default_payment_term()

        relationships = {
            "client": _relationship("clients", client_id),
            "account": _relationship("accounts", account_id),
        }
        if rate_table_id:
            relationships["rate-table"] = _relationship("rate-tables", rate_table_id)
        if payment_term_id:
            relationships["payment-term"] = _relationship("payment-terms", payment_term_id)

        payload = await self._request(
            "POST",
            "/v1/projects",
            "create_project",
            json={
                "data": {
                    "type": "projects",
                    "attributes": {
                        "project-name": name,
                        "executive-summary": executive_summary or "",
                    },
                    "relationships": relationships,
                }
            },
        )
        data = _resource(payload, "create_project")
        attributes = data.get("attributes") or {}
        project = ScopeStackProject(
            id=str(data.get("id")),
            name=attributes.get("project-name") or attributes.get("name") or name,
            status=attributes.get("status"),
            client_id=str(client_id),
            executive_summary=attributes.get("executive-summary"),
        )
        if services:
            await self.add_services_to_project(project.id, services)
        return project

    async def add_services_to_project(
        self, project_id: str, services: List[ScopeStackService]
    ) -> int:
        """POST one project-service per entry; returns the number created."""
        for index, service in enumerate(services):
            await self._request(
                "POST",
                "/v1/project-services",
                "add_services",
                json={
                    "data": {
                        "type": "project-services",
                        "attributes": {
                            "name": service.name,
                            "description": service.description,
                            "quantity": service.quantity or service.hours,
                            "total-hours": service.hours,
                            "position": service.position or index + 1,
                            "service-description": service.service_description or service.description,
                            "key-assumptions": service.key_assumptions,
                            "client-responsibilities": service.client_responsibilities,
                            "out-of-scope": service.out_of_scope,
                            "active": True,
                        },
                        "relationships": {"project": _relationship("projects", project_id)},
                    }
                },
            )
        return len(services)

    async def update_project_executive_summary(self, project_id: str, summary: str) -> None:
        await self._request(
            "PATCH",
            f"/v1/projects/{project_id}",
            "update_project_executive_summary",
            json={
                "data": {
                    "id": str(project_id),
                    "type": "projects",
                    "attributes": {"executive-summary": summary},
                }
            },
        )

    async def get_project_details(self, project_id: str) -> ScopeStackProject:
        payload = await self._request(
            "GET", f"/v1/projects/{project_id}", "get_project_details"
        )
        data = _resource(payload)
        attributes = data.get("attributes") or {}
        return ScopeStackProject(
            id=str(data.get("id", project_id)),
            name=attributes.get("project-name") or attributes.get("name") or "",
            status=attributes.get("status"),
            executive_summary=attributes.get("executive-summary"),
            contract_revenue=attributes.get("contract-revenue"),
            contract_cost=attributes.get("contract-cost"),
            contract_margin=attributes.get("contract-margin"),
        )

    # ==========================================================================
    # QUESTIONNAIRES AND SURVEYS
    # ==========================================================================
    async def get_questionnaires(self, tag: Optional[str] = None) -> List[ScopeStackQuestionnaire]:
        params = {"filter[active]": "true", "filter[published]": "true"}
        if tag:
            params["filter[tag-list]"] = tag
        payload = await self._request(
            "GET", "/v1/questionnaires", "get_questionnaires", params=params
        )
        return [
            ScopeStackQuestionnaire(
                id=str(record["id"]),
                name=(record.get("attributes") or {}).get("name", ""),
                description=(record.get("attributes") or {}).get("description"),
                tag_list=(record.get("attributes") or {}).get("tag-list") or [],
            )
            for record in _records(payload)
        ]

    async def create_survey(
        self,
        project_id: str,
        questionnaire_id: str,
        name: str,
        responses: Dict[str, Any],
        account_id: str,
    ) -> ScopeStackSurvey:
        payload = await self._request(
            "POST",
            "/v1/surveys",
            "create_survey",
            json={
                "data": {
                    "type": "surveys",
                    "attributes": {"name": f"{name} Survey", "responses": responses},
                    "relationships": {
                        "account": _relationship("accounts", account_id),
                        "questionnaire": _relationship("questionnaires", questionnaire_id),
                        "project": _relationship("projects", project_id),
                    },
                }
            },
        )
        data = _resource(payload, "create_survey")
        attributes = data.get("attributes") or {}
        return ScopeStackSurvey(
            id=str(data.get("id")),
            name=attributes.get("name", f"{name} Survey"),
            status=attributes.get("status"),
            project_id=str(project_id),
        )

    async def calculate_survey(self, survey_id: str) -> Optional[str]:
        """Trigger calculation and poll until it leaves ``calculating``.

        Returns the last observed status.
        """
        await self._request("PUT", f"/v1/surveys/{survey_id}/calculate", "calculate_survey")
        status = "calculating"
        polls = 0
        while status == "calculating" and polls < SURVEY_MAX_POLLS:
            await asyncio.sleep(self.poll_interval)
            payload = await self._request("GET", f"/v1/surveys/{survey_id}", "calculate_survey")
            status = (_resource(payload).get("attributes") or {}).get("status")
            polls += 1
        return status

    async def apply_survey_recommendations(self, survey_id: str) -> None:
        await self._request(
            "PUT", f"/v1/surveys/{survey_id}/apply", "apply_survey_recommendations"
        )

    # ==========================================================================
    # DOCUMENTS
    # ==========================================================================
    async def get_document_templates(self) -> List[Dict[str, str]]:
        payload = await self._request(
            "GET",
            "/v1/document-templates",
            "get_document_templates",
            params={"filter[active]": "true"},
        )
        return [
            {"id": str(record["id"]), "name": (record.get("attributes") or {}).get("name", "")}
            for record in _records(payload)
        ]

    async def create_project_document(
        self, project_id: str, template_id: Optional[str] = None
    ) -> ScopeStackDocument:
        if not template_id:
            templates = await self.get_document_templates()
            if not templates:
                raise ScopeStackAPIError(
                    "No document templates available", operation="create_document"
                )
            template_id = templates[0]["id"]

        payload = await self._request(
            "POST",
            "/v1/project-documents",
            "create_document",
            json={
                "data": {
                    "type": "project-documents",
                    "attributes": {
                        "template-id": template_id,
                        "document-type": "sow",
                        "force-regeneration": True,
                        "generate-pdf": True,
                    },
                    "relationships": {"project": _relationship("projects", project_id)},
                }
            },
        )
        data = _resource(payload, "create_document")
        attributes = data.get("attributes") or {}
        document = ScopeStackDocument(
            id=str(data.get("id")),
            status=attributes.get("status"),
            document_url=attributes.get("document-url"),
            template_id=str(template_id),
            project_id=str(project_id),
        )
        if not document.document_url:
            document.document_url = await self._poll_document_url(project_id)
        return document

    async def _poll_document_url(self, project_id: str) -> Optional[str]:
        for attempt in range(1, DOCUMENT_MAX_POLLS + 1):
            payload = await self._request(
                "GET",
                "/v1/project-documents",
                "create_document",
                params={"filter[project]": str(project_id), "include": "project"},
            )
            records = _records(payload)
            if records:
                attributes = records[0].get("attributes") or {}
                url = attributes.get("document-url")
                if url or attributes.get("status") == "finished":
                    return url
            if attempt < DOCUMENT_MAX_POLLS:
                await asyncio.sleep(self.poll_interval)
        return None
