"""
Mermaid dependency diagrams rendered by ``bd dep tree --format mermaid``.

bd draws each node as ``id["<symbol> id: title"]`` where the symbol encodes
the status. We add a ``style`` line per node so the diagram is coloured the
same way as the live dashboard, and prepend an init directive with the
matching theme variables.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

logger = logging.getLogger(__name__)

MERMAID_INIT_DIRECTIVE = """%%{init: {
  'theme': 'base',
  'themeVariables': {
    'primaryColor': '#d4edda',
    'primaryTextColor': '#155724',
    'primaryBorderColor': '#c3e6cb',
    'secondaryColor': '#cce5ff',
    'secondaryTextColor': '#004085',
    'secondaryBorderColor': '#b8daff',
    'tertiaryColor': '#f8d7da',
    'tertiaryTextColor': '#721c24',
    'tertiaryBorderColor': '#f5c6cb'
  }
}}%%"""

# Status symbol emitted by bd -> node style
STATUS_STYLES: dict[str, str] = {
    "☑": "fill:#d4edda,stroke:#c3e6cb,color:#155724",  # closed
    "◧": "fill:#cce5ff,stroke:#b8daff,color:#004085",  # in_progress
    "☐": "fill:#f8f9fa,stroke:#dee2e6,color:#495057",  # open
    "⊗": "fill:#f8d7da,stroke:#f5c6cb,color:#721c24",  # blocked
}

_NODE_RE = re.compile(r'^\s+([\w.-]+)\["([☑◧☐⊗])')


class BdRunner(Protocol):
    """Anything that can run a bd command in a repository (BeadsClient)."""

    def run_bd(self, args: list[str], repository: str | None = None) -> str: ...


class DiagramGenerator(Protocol):
    """Produces a mermaid diagram (without code fences) for a root bead."""

    def generate(self, repository: str | None, root_id: str) -> str: ...


def add_status_styling(diagram: str) -> str:
    """Append a ``style`` line for every node whose status symbol is known."""
    styles = []
    for line in diagram.splitlines():
        match = _NODE_RE.match(line)
        if match:
            node_id, symbol = match.groups()
            styles.append(f"  style {node_id} {STATUS_STYLES[symbol]}")
    if not styles:
        return diagram
    return diagram + "\n\n" + "\n".join(styles)


def fenced(diagram: str) -> str:
    """Wrap a diagram in a markdown mermaid code block."""
    return f"```mermaid\n{diagram}\n```"


class BdMermaidGenerator:
    """
    DiagramGenerator that shells out to ``bd dep tree``.

    Example:
        >>> generator = BdMermaidGenerator(beads_client)
        >>> print(generator.generate("frontend", "front-e1"))
    """

    def __init__(self, runner: BdRunner, include_init: bool = True) -> None:
        self.runner = runner
        self.include_init = include_init

    def generate(self, repository: str | None, root_id: str) -> str:
        output = self.runner.run_bd(
            ["dep", "tree", root_id, "--format", "mermaid", "--reverse"], repository
        )
        diagram = add_status_styling(output.strip())
        logger.debug("Generated diagram for %s (%d lines)", root_id, diagram.count("\n") + 1)
        if self.include_init:
            return f"{MERMAID_INIT_DIRECTIVE}\n{diagram}"
        return diagram
