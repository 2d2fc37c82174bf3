"""
Dashboard HTTP API.
"""

from .app import create_app, event_stream

__all__ = ["create_app", "event_stream"]
