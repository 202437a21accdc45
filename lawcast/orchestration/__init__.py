"""Poll orchestration for LawCast."""

from lawcast.orchestration.poller import NoticePoller, PollState
from lawcast.orchestration.result import PollCycleResult

__all__ = [
    "NoticePoller",
    "PollState",
    "PollCycleResult",
]
