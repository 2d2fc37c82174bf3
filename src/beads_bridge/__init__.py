"""
beads-bridge - sync beads epics with GitHub and Shortcut.

Keeps progress metrics and dependency diagrams of local beads epics in step
with the external issues they implement, and serves a live dashboard.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
