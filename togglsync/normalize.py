"""
Decoding of raw Toggl JSON into the stable domain model.

Field drift between API revisions is absorbed here and nowhere else:
FIELD_FALLBACKS lists, per stable field, the wire names tried in order, and
the *_DEFAULTS tables fill fields the remote left out or sent as null.
"""
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from togglsync.integrations.toggl_types import ReportOptions
from togglsync.models import (
    Client,
    DetailedReportItem,
    GroupedRecentEntry,
    Project,
    ProjectSummaryItem,
    RecentOccurrence,
    SummaryReport,
    Tag,
    TimeChart,
    TimeEntry,
    Workspace,
)

FIELD_FALLBACKS: Dict[str, Tuple[str, ...]] = {
    "workspace_id": ("workspace_id", "wid"),
    "client_id": ("client_id", "cid"),
    "project_id": ("project_id", "pid"),
    "user_id": ("user_id", "uid"),
}

ALIAS_KEYS = {
    key
    for field, chain in FIELD_FALLBACKS.items()
    for key in chain
    if key != field
}

CLIENT_DEFAULTS: Dict[str, Any] = {"archived": False}

PROJECT_DEFAULTS: Dict[str, Any] = {
    "actual_hours": 0,
    "billable": False,
    "is_private": False,
    "rate_last_updated": None,
    "server_deleted_at": None,
}

TIME_ENTRY_DEFAULTS: Dict[str, Any] = {
    "description": "",
    "tags": [],
    "tag_ids": [],
    "billable": False,
}

# A remote null on these replaces whatever the caller supplied
TIME_ENTRY_NULLABLE = {"stop", "server_deleted_at", "project_id"}

DETAILED_ITEM_DEFAULTS: Dict[str, Any] = {"time_entries": []}


def resolve(raw: Dict[str, Any], field: str, default: Any = None) -> Any:
    """First non-null value along the field's fallback chain."""
    for key in FIELD_FALLBACKS.get(field, (field,)):
        value = raw.get(key)
        if value is not None:
            return value
    return default


def apply_aliases(
    raw: Dict[str, Any], defaults: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Copy of ``raw`` with every alias chain collapsed onto its stable name
    and null or missing fields taken from ``defaults``.
    """
    data = {k: v for k, v in raw.items() if k not in ALIAS_KEYS}
    for field, chain in FIELD_FALLBACKS.items():
        value = resolve(raw, field)
        if value is not None:
            data[field] = value
        elif any(key in raw for key in chain):
            data[field] = None
    for field, fallback in (defaults or {}).items():
        if data.get(field) is None:
            data[field] = list(fallback) if isinstance(fallback, list) else fallback
    return data


def to_workspace(raw: Dict[str, Any]) -> Workspace:
    return Workspace(id=str(raw["id"]), name=raw.get("name") or "")


def to_client(raw: Dict[str, Any], workspace_id: int) -> Client:
    return Client(**apply_aliases(raw, {**CLIENT_DEFAULTS, "workspace_id": workspace_id}))


def to_project(raw: Dict[str, Any], workspace_id: int) -> Project:
    return Project(**apply_aliases(raw, {**PROJECT_DEFAULTS, "workspace_id": workspace_id}))


def to_tag(raw: Dict[str, Any], workspace_id: int) -> Tag:
    return Tag(**apply_aliases(raw, {"workspace_id": workspace_id}))


def to_time_entry(
    raw: Dict[str, Any],
    workspace_id: int,
    caller: Optional[Dict[str, Any]] = None,
) -> TimeEntry:
    """
    Build a TimeEntry from a remote response. Fields the response does not
    echo keep the caller-supplied value.
    """
    data = dict(caller or {})
    for field, value in apply_aliases(raw).items():
        if value is not None or field in TIME_ENTRY_NULLABLE:
            data[field] = value
    for field, fallback in {**TIME_ENTRY_DEFAULTS, "workspace_id": workspace_id}.items():
        if data.get(field) is None:
            data[field] = list(fallback) if isinstance(fallback, list) else fallback
    duration = data.get("duration")
    if duration is not None and duration < 0:
        data["stop"] = None
    elif duration is not None and data.get("stop") is None:
        data["stop"] = stop_from_duration(data.get("start"), duration)
    return TimeEntry(**data)


def stop_from_duration(start: Optional[str], duration: int) -> Optional[str]:
    """UTC stop instant of a finished entry, or None when start is unusable."""
    if not start:
        return None
    try:
        started = datetime.fromisoformat(start.replace("Z", "+00:00"))
    except ValueError:
        return None
    stop = started + timedelta(seconds=duration)
    return stop.isoformat().replace("+00:00", "Z")


def decode_detailed_envelope(payload: Any) -> List[Dict[str, Any]]:
    """
    Rows of a detailed report page. Accepts a bare list, ``{"data": [...]}``
    or ``{"results": [...]}``; any other shape has no rows.
    """
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        rows = payload["data"]
    elif isinstance(payload, dict) and isinstance(payload.get("results"), list):
        rows = payload["results"]
    else:
        rows = []
    return [row for row in rows if isinstance(row, dict)]


def to_detailed_items(payload: Any) -> List[DetailedReportItem]:
    return [
        DetailedReportItem(**apply_aliases(row, DETAILED_ITEM_DEFAULTS))
        for row in decode_detailed_envelope(payload)
    ]


def to_summary_report(payload: Any) -> SummaryReport:
    if not isinstance(payload, dict):
        return SummaryReport()
    return SummaryReport(**{**payload, "groups": payload.get("groups") or []})


def summary_groups(payload: Any) -> List[ProjectSummaryItem]:
    """Per-group totals of a summary report, for the daily status display."""
    if not isinstance(payload, dict):
        return []
    items = []
    for group in payload.get("groups") or []:
        if not isinstance(group, dict):
            continue
        seconds = group.get("seconds")
        if seconds is None:
            # v3 summaries only carry totals on the sub groups
            seconds = sum(
                sub.get("seconds") or 0
                for sub in group.get("sub_groups") or []
                if isinstance(sub, dict)
            )
        items.append(
            ProjectSummaryItem(
                id=group.get("id"), name=group.get("name"), seconds=seconds
            )
        )
    return items


def resolution_for(start_date: date, end_date: date) -> str:
    """Chart resolution from the requested span in whole days."""
    diff_days = (end_date - start_date).days
    if diff_days <= 1:
        return "hour"
    if diff_days <= 31:
        return "day"
    return "month"


def to_time_chart(payload: Any, options: ReportOptions) -> TimeChart:
    data = dict(payload) if isinstance(payload, dict) else {}
    data["graph"] = data.get("graph") or []
    data["total_seconds"] = data.get("total_seconds") or 0
    data["resolution"] = resolution_for(options.start_date, options.end_date)
    return TimeChart(**data)


def fold_recent_entries(raw_entries: Iterable[Dict[str, Any]]) -> List[GroupedRecentEntry]:
    """
    Fold raw entries sharing (user, project, description) into one group each.
    Groups keep first-seen order; occurrences keep input order.
    """
    groups: Dict[Tuple[Any, Any, Any], List[Dict[str, Any]]] = {}
    for raw in raw_entries:
        entry = apply_aliases(raw)
        key = (
            entry.get("user_id"),
            entry.get("project_id") or "no_project",
            entry.get("description") or "no_desc",
        )
        groups.setdefault(key, []).append(entry)

    folded = []
    for row_number, members in enumerate((m for m in groups.values() if m), start=1):
        first = members[0]
        folded.append(
            GroupedRecentEntry(
                row_number=row_number,
                user_id=first.get("user_id") or 0,
                project_id=first.get("project_id"),
                description=first.get("description") or "",
                tag_ids=[str(t) for t in first.get("tag_ids") or []],
                time_entries=[
                    RecentOccurrence(
                        id=e["id"],
                        start=e["start"],
                        stop=e.get("stop") or e["start"],
                        seconds=max(e.get("duration") or 0, 0),
                        at=e.get("at"),
                    )
                    for e in members
                ],
            )
        )
    return folded
