"""
Synchronization facade: the single entry point the host application uses.

Every operation resolves the active workspace from the injected settings at
call time, so edits to the configuration mid-session apply to the next call.
"""
from __future__ import annotations
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import httpx

from togglsync.config import Settings, settings
from togglsync.integrations.toggl_client import TogglAPIError, TogglClient
from togglsync.integrations.toggl_types import ReportOptions, TimeEntryCreate
from togglsync.models import (
    Client,
    DetailedReportItem,
    GroupedRecentEntry,
    Project,
    ProjectSummaryItem,
    SummaryReport,
    Tag,
    TimeChart,
    TimeEntry,
    TimeEntryStart,
    Workspace,
)
from togglsync.normalize import (
    fold_recent_entries,
    resolve,
    summary_groups,
    to_client,
    to_detailed_items,
    to_project,
    to_summary_report,
    to_tag,
    to_time_chart,
    to_time_entry,
    to_workspace,
)
from togglsync.notify import Notifier, error_message, log_notifier
from togglsync.observability.metrics import notifications_total
from togglsync.policy import FailurePolicy, remote_operation
from togglsync.queue import ApiQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TogglConnectionError(TogglAPIError):
    """The connectivity probe made while setting the token failed."""
    def __init__(self, message: str = "Cannot connect to Toggl API."):
        super().__init__("connection_error", message, 503)


class TogglNotInitializedError(RuntimeError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _today() -> date:
    return date.today()


class TogglAPI:
    """Wrapper for performing common operations on the Toggl API."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = config or settings
        self._notifier = notifier or log_notifier
        self._transport = transport
        self._api: Optional[TogglClient] = None
        self._queue = ApiQueue()

    async def set_token(self, api_token: Optional[str] = None) -> None:
        """
        Must be called after construction and before any other operation.
        Without an argument the configured TOGGL_API_TOKEN is used.
        Raises TogglConnectionError when the Toggl API cannot be reached; the
        facade then stays unusable until a later call succeeds.
        """
        api_token = api_token or self._settings.TOGGL_API_TOKEN
        if not api_token:
            raise ValueError("TOGGL_API_TOKEN is not configured")
        self._api = TogglClient(
            api_token,
            base_url=self._settings.TOGGL_API_BASE_URL,
            reports_base_url=self._settings.TOGGL_REPORTS_BASE_URL,
            timeout=self._settings.HTTP_TIMEOUT,
            user_agent=self._settings.TOGGL_USER_AGENT,
            transport=self._transport,
        )
        try:
            await self.test_connection()
        except TogglAPIError as e:
            self._api = None
            raise TogglConnectionError() from e

    async def test_connection(self) -> None:
        """Raises TogglAPIError when the Toggl API cannot be reached."""
        await self._client.get_workspaces()

    @property
    def _client(self) -> TogglClient:
        if self._api is None:
            raise TogglNotInitializedError("set_token() must succeed before using the Toggl API")
        return self._api

    def _workspace_id(self) -> int:
        value = self._settings.TOGGL_WORKSPACE_ID
        if not value:
            raise ValueError("TOGGL_WORKSPACE_ID is not configured")
        return int(value)

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` directly, or through the queue when the operation is serialized."""
        if operation in self._settings.serialized_operations():
            return await self._queue.queue(fn)
        return await fn()

    def _notify_failure(self, operation: str, error: Exception) -> None:
        notifications_total.labels(operation=operation).inc()
        self._notifier(error_message(error))

    # Entities

    @remote_operation("workspaces")
    async def get_workspaces(self) -> List[Workspace]:
        """List of the user's workspaces; ids become decimal strings."""
        client = self._client
        response = await self._call("workspaces", client.get_workspaces)
        return [to_workspace(w) for w in response or []]

    @remote_operation("clients")
    async def get_clients(self) -> List[Client]:
        client = self._client
        workspace_id = self._workspace_id()
        response = await self._call("clients", lambda: client.get_clients(workspace_id))
        return [to_client(c, workspace_id) for c in response or []]

    @remote_operation("projects")
    async def get_projects(self) -> List[Project]:
        """Active projects of the configured workspace; inactive ones are dropped."""
        client = self._client
        workspace_id = self._workspace_id()
        response = await self._call("projects", lambda: client.get_projects(workspace_id))
        return [to_project(p, workspace_id) for p in response or [] if p.get("active")]

    @remote_operation("tags")
    async def get_tags(self) -> List[Tag]:
        client = self._client
        workspace_id = self._workspace_id()
        response = await self._call("tags", lambda: client.get_tags(workspace_id))
        return [to_tag(t, workspace_id) for t in response or []]

    @remote_operation("recent_time_entries")
    async def get_recent_time_entries(self) -> List[GroupedRecentEntry]:
        """
        Entries from the last RECENT_DAYS days (today included), grouped by
        user, project and description to approximate recently used timers.
        """
        client = self._client
        today = _today()
        start_date = (today - timedelta(days=self._settings.RECENT_DAYS)).isoformat()
        end_date = today.isoformat()
        response = await self._call(
            "recent_time_entries",
            lambda: client.get_time_entries(start_date, end_date),
        )
        return fold_recent_entries(response or [])

    # Reports

    @remote_operation("daily_summary", FailurePolicy.RECOVER_TO_EMPTY)
    async def get_daily_summary(self) -> List[ProjectSummaryItem]:
        """
        Summary of the current day. Best-effort: feeds a passive display, so
        a failure yields an empty list.
        """
        client = self._client
        workspace_id = self._workspace_id()
        today = _today()
        options = ReportOptions(start_date=today, end_date=today)
        response = await self._call(
            "daily_summary",
            lambda: client.get_summary_report(workspace_id, options),
        )
        return summary_groups(response)

    @remote_operation("summary")
    async def get_summary(self, options: ReportOptions) -> SummaryReport:
        client = self._client
        workspace_id = self._workspace_id()
        response = await self._call(
            "summary", lambda: client.get_summary_report(workspace_id, options)
        )
        return to_summary_report(response)

    @remote_operation("summary_time_chart")
    async def get_summary_time_chart(self, options: ReportOptions) -> TimeChart:
        """Summary report plus a chart resolution derived from the date span."""
        client = self._client
        workspace_id = self._workspace_id()
        response = await self._call(
            "summary_time_chart",
            lambda: client.get_summary_report(workspace_id, options),
        )
        return to_time_chart(response, options)

    @remote_operation("detailed_report")
    async def get_detailed_report(self, options: ReportOptions) -> List[DetailedReportItem]:
        """
        All rows of the detailed report. Pages are fetched back to back inside
        a single queued operation.
        """
        client = self._client
        workspace_id = self._workspace_id()
        return await self._call(
            "detailed_report",
            lambda: self._fetch_detailed_pages(client, workspace_id, options),
        )

    async def _fetch_detailed_pages(
        self, client: TogglClient, workspace_id: int, options: ReportOptions
    ) -> List[DetailedReportItem]:
        page_size = self._settings.DETAILED_REPORT_PAGE_SIZE
        max_pages = self._settings.DETAILED_REPORT_MAX_PAGES
        items: List[DetailedReportItem] = []
        first_row = 1
        for _ in range(max_pages):
            payload = await client.get_detailed_report(
                workspace_id, options, first_row_number=first_row, page_size=page_size
            )
            page = to_detailed_items(payload)
            items.extend(page)
            if len(page) < page_size:
                return items
            first_row += page_size
        logger.warning(
            f"Detailed report stopped after {max_pages} pages ({len(items)} rows)",
            extra={"operation": "detailed_report", "workspace_id": workspace_id},
        )
        return items

    # Timers

    @remote_operation("start_timer")
    async def start_timer(self, entry: TimeEntryStart) -> TimeEntry:
        """Start a running timer with the given description and project."""
        client = self._client
        workspace_id = self._workspace_id()
        now = _now()
        body = TimeEntryCreate(
            workspace_id=workspace_id,
            created_with=self._settings.TOGGL_CREATED_WITH,
            start=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
            duration=-int(now.timestamp()),
            stop=None,
            billable=entry.billable,
            description=entry.description,
            project_id=entry.project_id,
            tags=list(entry.tags),
            tag_ids=entry.tag_ids,
        )
        result = await self._call(
            "start_timer", lambda: client.create_time_entry(workspace_id, body)
        )
        return to_time_entry(result or {}, workspace_id, caller=body.model_dump())

    @remote_operation("stop_timer")
    async def stop_timer(self, entry: TimeEntry) -> TimeEntry:
        """Stop ``entry`` in the configured workspace, whatever the entry says."""
        client = self._client
        workspace_id = self._workspace_id()
        result = await self._call(
            "stop_timer", lambda: client.stop_time_entry(workspace_id, entry.id)
        )
        return to_time_entry(result or {}, workspace_id, caller=entry.model_dump())

    @remote_operation("current_timer")
    async def get_current_timer(self) -> Optional[TimeEntry]:
        """The running timer, or None when nothing is running."""
        client = self._client
        result: Any = await self._call("current_timer", client.get_current_time_entry)
        if not result:
            return None
        workspace_id = resolve(result, "workspace_id") or self._workspace_id()
        return to_time_entry(result, workspace_id)
