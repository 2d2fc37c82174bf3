"""
Live dashboard: polling, state snapshots, and broadcast.
"""

from .broadcaster import Broadcaster, QueueSubscriber, format_sse
from .polling import AsyncioScheduler, PollingService, PollState
from .state import DashboardMetrics, IssueState, LiveStateBackend, build_issue_state

__all__ = [
    "AsyncioScheduler",
    "Broadcaster",
    "DashboardMetrics",
    "IssueState",
    "LiveStateBackend",
    "PollState",
    "PollingService",
    "QueueSubscriber",
    "build_issue_state",
    "format_sse",
]
