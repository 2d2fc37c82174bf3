"""
Progress rendering and synchronization to external issues.
"""

from .models import CapabilityResult, CommentAction, ErrorDetail, StorySyncResult
from .orchestrator import ProgressOrchestrator
from .shortcut_sync import ShortcutStorySync

__all__ = [
    "CapabilityResult",
    "CommentAction",
    "ErrorDetail",
    "ProgressOrchestrator",
    "ShortcutStorySync",
    "StorySyncResult",
]
