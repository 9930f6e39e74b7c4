"""Reception status lifecycle.

A reception is created ``in_progress`` and transitions exactly once, to
``closed``. Closed is terminal: a new reception must be opened instead of
reopening an old one.
"""

from __future__ import annotations

from enum import StrEnum


class ReceptionStatus(StrEnum):
    """Machine status for receptions."""

    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


RECEPTION_TRANSITIONS: dict[str, list[str]] = {
    "in_progress": ["closed"],
    "closed": [],
}

def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = RECEPTION_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def is_open(status: str) -> bool:
    """True while items may still be added to or removed from the reception."""
    return status == ReceptionStatus.IN_PROGRESS
