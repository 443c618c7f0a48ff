"""
Stable domain model handed to the rest of the application.

These shapes never carry the remote API's alias names (wid, cid, pid, uid);
the facade resolves those once when building them.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


class DomainModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class PassThroughModel(BaseModel):
    """Reports API shapes: known fields typed, everything else kept."""
    model_config = ConfigDict(frozen=True, extra="allow")


class Workspace(DomainModel):
    id: str
    name: str


class Client(DomainModel):
    id: int
    workspace_id: int
    name: str
    archived: bool = False


class Project(DomainModel):
    id: int
    workspace_id: int
    client_id: Optional[int] = None
    name: str
    active: bool = True
    color: Optional[str] = None
    billable: bool = False
    is_private: bool = False
    actual_hours: float = 0
    estimated_hours: Optional[float] = None
    rate: Optional[float] = None
    rate_last_updated: Optional[str] = None
    currency: Optional[str] = None
    server_deleted_at: Optional[str] = None


class Tag(DomainModel):
    id: int
    workspace_id: int
    name: str


class TimeEntry(DomainModel):
    """
    A time entry snapshot. ``stop`` is None exactly while ``duration`` is
    negative; a negative duration is ``-start`` in unix seconds.
    """
    id: int
    workspace_id: int
    project_id: Optional[int] = None
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    tag_ids: List[int] = Field(default_factory=list)
    start: str
    stop: Optional[str] = None
    duration: int
    billable: bool = False
    created_with: Optional[str] = None
    at: Optional[str] = None
    server_deleted_at: Optional[str] = None
    user_id: Optional[int] = None

    @property
    def running(self) -> bool:
        return self.duration < 0


class TimeEntryStart(DomainModel):
    """What a caller supplies to start a timer."""
    description: str = ""
    project_id: Optional[int] = None
    billable: bool = False
    tags: List[str] = Field(default_factory=list)
    tag_ids: Optional[List[int]] = None


class RecentOccurrence(DomainModel):
    id: int
    start: str
    stop: str
    seconds: int = 0
    at: Optional[str] = None


class GroupedRecentEntry(DomainModel):
    """Raw entries folded by (user, project, description)."""
    row_number: int
    user_id: int = 0
    project_id: Optional[int] = None
    description: str = ""
    tag_ids: List[str] = Field(default_factory=list)
    time_entries: List[RecentOccurrence] = Field(min_length=1)


class ProjectSummaryItem(DomainModel):
    id: Optional[int] = None
    name: Optional[str] = None
    seconds: int = 0


class SummaryReport(PassThroughModel):
    groups: List[Any] = Field(default_factory=list)


class DetailedReportItem(PassThroughModel):
    user_id: Optional[int] = None
    username: Optional[str] = None
    project_id: Optional[int] = None
    description: Optional[str] = None
    time_entries: List[Any] = Field(default_factory=list)


class TimeChart(PassThroughModel):
    graph: List[Any] = Field(default_factory=list)
    resolution: str
    total_seconds: int = 0
