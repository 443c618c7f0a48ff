from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    # Toggl
    TOGGL_API_TOKEN: str | None = None  # do not commit
    TOGGL_WORKSPACE_ID: str | None = None
    TOGGL_API_BASE_URL: str = "https://api.track.toggl.com/api/v9"
    TOGGL_REPORTS_BASE_URL: str = "https://api.track.toggl.com/reports/api/v3"
    TOGGL_USER_AGENT: str = "Toggl Integration for Obsidian (https://github.com/mcndt/obsidian-toggl-integration)"
    TOGGL_CREATED_WITH: str = "Toggl Track for Obsidian"

    # HTTP
    HTTP_TIMEOUT: float = 20.0

    # Request serialization: operation names routed through the queue
    SERIALIZED_OPERATIONS: str = "detailed_report"

    # Reports
    DETAILED_REPORT_PAGE_SIZE: int = 50
    DETAILED_REPORT_MAX_PAGES: int = 20
    RECENT_DAYS: int = 9

    # Snapshots
    REFRESH_INTERVAL_SECONDS: int = 60

    # Observability
    LOG_JSON: bool = False

    def serialized_operations(self) -> set[str]:
        return {s.strip() for s in self.SERIALIZED_OPERATIONS.split(",") if s.strip()}

settings = Settings()
