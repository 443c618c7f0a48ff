"""
Pydantic models for Toggl request bodies.
Responses are not modelled here; they are trusted as raw JSON and
normalized by the facade.
"""
from datetime import date
from pydantic import BaseModel
from typing import Optional, List


class TimeEntryCreate(BaseModel):
    """Request body for creating a time entry (API v9)."""
    workspace_id: int
    created_with: str
    start: str  # ISO 8601
    duration: int  # negative while running
    stop: Optional[str] = None
    billable: bool = False
    description: Optional[str] = None
    project_id: Optional[int] = None
    tags: List[str] = []
    tag_ids: Optional[List[int]] = None


class TimeEntryUpdate(BaseModel):
    """Request body for updating a time entry."""
    description: Optional[str] = None
    project_id: Optional[int] = None
    billable: Optional[bool] = None
    start: Optional[str] = None
    stop: Optional[str] = None
    duration: Optional[int] = None
    tags: Optional[List[str]] = None
    tag_ids: Optional[List[int]] = None


class ProjectCreate(BaseModel):
    """Request body for creating a project."""
    name: str
    client_id: Optional[int] = None
    color: Optional[str] = None
    billable: bool = False
    is_private: bool = True
    active: bool = True


class ReportOptions(BaseModel):
    """Date range and filters shared by the summary and detailed reports."""
    start_date: date
    end_date: date
    project_ids: Optional[List[int]] = None
    client_ids: Optional[List[int]] = None
    tag_ids: Optional[List[int]] = None

    def to_body(self) -> dict:
        """Dates serialize as YYYY-MM-DD; unset filters are omitted."""
        return self.model_dump(mode="json", exclude_none=True)
