"""Containment rules for hyphen-delimited department labels.

A department such as ``"IT-Support"`` is a child of ``"IT"``. Authority flows
from the coarse label to the finer ones only: ``"IT"`` contains
``"IT-Support"``, never the reverse.
"""

from __future__ import annotations

SEPARATOR = "-"


def department_segments(department: str | None) -> list[str]:
    """Split a label into its lower-cased segments, dropping blanks."""
    if not department:
        return []
    return [segment.strip().lower() for segment in department.split(SEPARATOR) if segment.strip()]


def normalize_department(department: str | None) -> str | None:
    """Canonical stored form: trimmed segments re-joined, original casing kept."""
    if department is None:
        return None
    segments = [segment.strip() for segment in department.split(SEPARATOR) if segment.strip()]
    return SEPARATOR.join(segments) or None


def department_contains(parent: str | None, child: str | None) -> bool:
    """Return True if ``child`` is ``parent`` or one of its sub-departments."""
    parent_segments = department_segments(parent)
    child_segments = department_segments(child)
    if not parent_segments or not child_segments:
        return False
    if len(parent_segments) > len(child_segments):
        return False
    return child_segments[: len(parent_segments)] == parent_segments


def department_key(department: str | None) -> str | None:
    """Lower-cased stored form used for containment queries.

    Case folding happens here rather than in SQL, so stored keys agree with
    ``department_segments`` for any label, not only ASCII ones.
    """
    return SEPARATOR.join(department_segments(department)) or None
