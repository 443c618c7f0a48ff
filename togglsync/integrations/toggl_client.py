"""
Async Toggl Track API client for the entity API (v9) and reports API (v3).

Responses are returned as parsed JSON without validation; callers own
tolerance for missing or renamed fields.
"""
import base64
import logging
from typing import Dict, Any, List, Optional
import httpx
from togglsync.utils.http import create_http_client
from togglsync.integrations.toggl_types import (
    TimeEntryCreate,
    TimeEntryUpdate,
    ProjectCreate,
    ReportOptions,
)
from togglsync.observability.metrics import requests_total
from togglsync.config import settings

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "validation_error",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    429: "rate_limited",
}


class TogglAPIError(Exception):
    """Base exception for Toggl API errors."""
    def __init__(self, code: str, message: str, status_code: int = 500):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TogglHTTPError(TogglAPIError):
    """Raised for any response with status >= 400; carries the raw body text."""
    def __init__(self, status_code: int, text: str):
        self.text = text
        if status_code >= 500:
            code = "upstream_error"
        else:
            code = ERROR_CODES.get(status_code, "http_error")
        super().__init__(code, f"HTTP {status_code}: {text}", status_code)


class TogglClient:
    """Async Toggl API client. No request is made until the first call."""

    def __init__(
        self,
        api_token: str,
        base_url: Optional[str] = None,
        reports_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_token:
            raise ValueError("A Toggl API token is required")

        self.api_token = api_token
        self.base_url = (base_url or settings.TOGGL_API_BASE_URL).rstrip("/")
        self.reports_base_url = (
            reports_base_url or settings.TOGGL_REPORTS_BASE_URL
        ).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.user_agent = user_agent or settings.TOGGL_USER_AGENT
        self.transport = transport

    def _auth_headers(self) -> Dict[str, str]:
        """Basic auth with the literal password ``api_token``."""
        token = base64.b64encode(f"{self.api_token}:api_token".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    async def _request(
        self,
        method: str,
        url: str,
        api: str = "entity",
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """
        Make a single HTTP request and return the decoded JSON body.
        Every failure is logged with method and URL, then raised.
        """
        headers = self._auth_headers()
        headers["Content-Type"] = "application/json"
        log_extra = {"method": method, "url": url}

        try:
            async with create_http_client(
                timeout=self.timeout,
                user_agent=self.user_agent,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    json=json_body,
                )
        except httpx.HTTPError as e:
            requests_total.labels(api=api, method=method, status="error").inc()
            logger.error(f"Toggl API request failed: {method} {url}: {e}", extra=log_extra)
            raise TogglAPIError("network_error", f"Network error: {e}") from e

        requests_total.labels(
            api=api, method=method, status=str(response.status_code)
        ).inc()

        if response.status_code >= 400:
            error = TogglHTTPError(response.status_code, response.text)
            logger.error(
                f"Toggl API request failed: {method} {url}: {error.message}",
                extra={**log_extra, "status": response.status_code},
            )
            raise error

        # The current-entry endpoint answers with an empty or null body when idle
        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Toggl API request failed: {method} {url}: invalid JSON body",
                extra={**log_extra, "status": response.status_code},
            )
            raise TogglAPIError(
                "invalid_response", "Response body is not valid JSON", response.status_code
            ) from e

    def _entity(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _reports(self, path: str) -> str:
        return f"{self.reports_base_url}{path}"

    # Workspaces

    async def get_workspaces(self) -> List[Dict[str, Any]]:
        """List the user's workspaces."""
        return await self._request("GET", self._entity("/workspaces"))

    # Current user

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._request("GET", self._entity("/me"))

    # Time entries

    async def get_current_time_entry(self) -> Optional[Dict[str, Any]]:
        """Running time entry, or None when no timer is running."""
        return await self._request("GET", self._entity("/me/time_entries/current"))

    async def get_time_entries(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """List time entries, optionally bounded by YYYY-MM-DD dates."""
        params = {}
        if start_date:
            params["start_date"] = start_date
        if end_date:
            params["end_date"] = end_date
        return await self._request(
            "GET", self._entity("/me/time_entries"), params=params or None
        )

    async def create_time_entry(
        self, workspace_id: int, body: TimeEntryCreate
    ) -> Dict[str, Any]:
        """Create a time entry. A negative duration starts a running timer."""
        return await self._request(
            "POST",
            self._entity(f"/workspaces/{workspace_id}/time_entries"),
            json_body={"time_entry": body.model_dump()},
        )

    async def update_time_entry(
        self, workspace_id: int, time_entry_id: int, body: TimeEntryUpdate
    ) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            self._entity(f"/workspaces/{workspace_id}/time_entries/{time_entry_id}"),
            json_body={"time_entry": body.model_dump(exclude_none=True)},
        )

    async def stop_time_entry(
        self, workspace_id: int, time_entry_id: int
    ) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            self._entity(
                f"/workspaces/{workspace_id}/time_entries/{time_entry_id}/stop"
            ),
        )

    async def delete_time_entry(self, workspace_id: int, time_entry_id: int) -> None:
        await self._request(
            "DELETE",
            self._entity(f"/workspaces/{workspace_id}/time_entries/{time_entry_id}"),
        )

    # Projects

    async def get_projects(
        self, workspace_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Projects of a workspace, or of every workspace when none is given."""
        if workspace_id:
            path = f"/workspaces/{workspace_id}/projects"
        else:
            path = "/me/projects"
        return await self._request("GET", self._entity(path))

    async def create_project(
        self, workspace_id: int, body: ProjectCreate
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            self._entity(f"/workspaces/{workspace_id}/projects"),
            json_body={"project": body.model_dump(exclude_none=True)},
        )

    # Clients

    async def get_clients(
        self, workspace_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        if workspace_id:
            path = f"/workspaces/{workspace_id}/clients"
        else:
            path = "/me/clients"
        return await self._request("GET", self._entity(path))

    # Tags

    async def get_tags(self, workspace_id: int) -> List[Dict[str, Any]]:
        return await self._request(
            "GET", self._entity(f"/workspaces/{workspace_id}/tags")
        )

    # Reports

    async def get_detailed_report(
        self,
        workspace_id: int,
        options: ReportOptions,
        first_row_number: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Any:
        """
        One page of the detailed report. The envelope varies between API
        revisions, so the raw JSON is returned as-is.
        """
        body = options.to_body()
        if first_row_number is not None:
            body["first_row_number"] = first_row_number
        if page_size is not None:
            body["page_size"] = page_size
        return await self._request(
            "POST",
            self._reports(f"/workspace/{workspace_id}/reports/detailed"),
            api="reports",
            json_body=body,
        )

    async def get_summary_report(
        self, workspace_id: int, options: ReportOptions
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            self._reports(f"/workspace/{workspace_id}/reports/summary"),
            api="reports",
            json_body=options.to_body(),
        )
