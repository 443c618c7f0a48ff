from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.job import Job
from .config import settings
from .stores import SnapshotStore, refresh_snapshot

scheduler: AsyncIOScheduler | None = None

REFRESH_JOB_ID = "toggl_snapshot_refresh"

async def _job(api, store: SnapshotStore):
    await refresh_snapshot(api, store)

def start_scheduler() -> AsyncIOScheduler:
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler()
        scheduler.start()
    return scheduler

def schedule_refresh(
    api,
    store: SnapshotStore,
    seconds: int | None = None,
    target: AsyncIOScheduler | None = None,
) -> Job:
    s = target or start_scheduler()
    trigger = IntervalTrigger(seconds=seconds or settings.REFRESH_INTERVAL_SECONDS)
    return s.add_job(
        _job,
        trigger,
        id=REFRESH_JOB_ID,
        replace_existing=True,
        kwargs=dict(api=api, store=store),
    )
