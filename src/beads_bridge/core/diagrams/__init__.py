"""
Dependency diagram generation.
"""

from .mermaid import (
    BdMermaidGenerator,
    DiagramGenerator,
    add_status_styling,
    fenced,
)

__all__ = ["BdMermaidGenerator", "DiagramGenerator", "add_status_styling", "fenced"]
