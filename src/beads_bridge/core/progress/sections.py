"""
Helpers for marker-delimited sections inside markdown bodies.

A section is the text between two HTML comments, e.g.
``<!-- YAK_MAP_START -->`` and ``<!-- YAK_MAP_END -->``. Everything outside
the markers belongs to the user and is preserved byte for byte.
"""

from __future__ import annotations


def find_section(markdown: str, start_marker: str, end_marker: str) -> str | None:
    """
    Return the content between the markers, or None if either is missing.

    A single newline directly after the start marker is not part of the
    content.
    """
    start = markdown.find(start_marker)
    if start == -1:
        return None
    content_start = start + len(start_marker)
    end = markdown.find(end_marker, content_start)
    if end == -1:
        return None
    content = markdown[content_start:end]
    return content[1:] if content.startswith("\n") else content


def update_section(markdown: str, start_marker: str, end_marker: str, content: str) -> str:
    """
    Replace the content of an existing section.

    Raises:
        ValueError: If the section is not present
    """
    start = markdown.find(start_marker)
    if start == -1:
        raise ValueError("Section not found: start marker not found")
    content_start = start + len(start_marker)
    end = markdown.find(end_marker, content_start)
    if end == -1:
        raise ValueError("Section not found: end marker not found")
    return markdown[:content_start] + "\n" + content + markdown[end:]


def append_section(markdown: str, start_marker: str, end_marker: str, content: str) -> str:
    """Append a new section, separated from existing text by a blank line."""
    result = markdown
    if result and not result.endswith("\n"):
        result += "\n"
    if result:
        result += "\n"
    return f"{result}{start_marker}\n{content}{end_marker}\n"


def upsert_section(markdown: str, start_marker: str, end_marker: str, content: str) -> str:
    """Replace the section when present, otherwise append it."""
    if find_section(markdown, start_marker, end_marker) is None:
        return append_section(markdown, start_marker, end_marker, content)
    return update_section(markdown, start_marker, end_marker, content)
