"""Scheduling for LawCast.

Provides:
- APScheduler wrapper driving periodic poll cycles
- Job base class with correlation ids and run counters

Usage:
    from lawcast.scheduling import NoticeScheduler

    scheduler = NoticeScheduler(timezone="Asia/Seoul")
    scheduler.add_poll_job(poller, interval_minutes=10)
    await scheduler.start()
"""

from lawcast.scheduling.scheduler import NoticeScheduler
from lawcast.scheduling.jobs import BaseJob, NoticePollJob

__all__ = [
    "NoticeScheduler",
    "BaseJob",
    "NoticePollJob",
]
