"""Deterministic editor colours."""

from __future__ import annotations

from .hashing import rolling_hash32

EDITOR_COLORS: tuple[str, ...] = (
    "#F56565",  # red
    "#ED8936",  # orange
    "#ECC94B",  # yellow
    "#48BB78",  # green
    "#38B2AC",  # teal
    "#4299E1",  # blue
    "#667EEA",  # indigo
    "#9F7AEA",  # purple
    "#ED64A6",  # pink
    "#FC8181",  # light red
    "#F6AD55",  # light orange
    "#68D391",  # light green
    "#63B3ED",  # light blue
    "#B794F4",  # light purple
    "#F687B3",  # light pink
    "#76E4F7",  # cyan
)


def color_for_editor(editor_id: str) -> str:
    """Pick a palette colour for *editor_id*; the same id always maps to the same colour."""
    return EDITOR_COLORS[abs(rolling_hash32(editor_id)) % len(EDITOR_COLORS)]
