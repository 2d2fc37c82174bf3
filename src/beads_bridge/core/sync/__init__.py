"""
One-directional sync from beads to external issue trackers.
"""

from .models import SyncDetail, SyncReport, SyncStatus
from .service import SyncService, registry_backend_resolver

__all__ = [
    "SyncDetail",
    "SyncReport",
    "SyncService",
    "SyncStatus",
    "registry_backend_resolver",
]
