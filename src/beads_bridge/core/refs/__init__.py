"""
External reference parsing and resolution.
"""

from .parser import (
    ParsedExternalRef,
    detect_backend_from_ref,
    is_valid_external_ref_format,
    parse_external_ref,
)
from .resolver import EpicLink, ExternalRefResolver, ResolutionResult, build_external_ref

__all__ = [
    "EpicLink",
    "ExternalRefResolver",
    "ParsedExternalRef",
    "ResolutionResult",
    "build_external_ref",
    "detect_backend_from_ref",
    "is_valid_external_ref_format",
    "parse_external_ref",
]
