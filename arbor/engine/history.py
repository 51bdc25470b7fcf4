"""
History Manager - Bounded Undo/Redo of Full Snapshots

Each history entry is a fully independent deep copy of the document plus
the view state needed to restore it (text mirror, expansion, selection,
anchor). Stacks are kept newest-first and capped at the configured limit;
the oldest entries fall off the end.

Usage:
    entry = snapshot(state)
    undo_stack, redo_stack = push(state.undo_stack, entry, limit=50)
"""

from __future__ import annotations

import structlog

from arbor.models import EditorState, HistoryEntry

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def snapshot(state: EditorState) -> HistoryEntry:
    """Capture an independent copy of the restorable parts of state."""
    return HistoryEntry(
        doc=state.doc.model_copy(deep=True) if state.doc else None,
        raw_text=state.raw_text,
        expanded=sorted(state.expanded),
        selected_id=state.selected_id,
        pre_search_expanded=(
            sorted(state.pre_search_expanded) if state.pre_search_expanded is not None else None
        ),
        anchor_path=list(state.anchor_path),
    )


def push(
    stack: list[HistoryEntry],
    entry: HistoryEntry,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[HistoryEntry]:
    """Return a new stack with entry on top, trimmed to limit."""
    return [entry, *stack][: max(limit, 0)]


def record(previous: EditorState, following: EditorState) -> EditorState:
    """
    Attach history to a successful mutation.

    Pushes a snapshot of the pre-mutation state onto undo and clears redo.
    """
    undo_stack = push(previous.undo_stack, snapshot(previous), previous.history_limit)

    logger.debug("history_recorded", undo_depth=len(undo_stack))

    return following.model_copy(update={"undo_stack": undo_stack, "redo_stack": []})


def restore(state: EditorState, entry: HistoryEntry, **stacks) -> EditorState:
    """Rebuild state from a history entry, keeping settings and search query."""
    return state.model_copy(
        update={
            "doc": entry.doc.model_copy(deep=True) if entry.doc else None,
            "raw_text": entry.raw_text,
            "expanded": set(entry.expanded),
            "selected_id": entry.selected_id,
            "anchor_path": list(entry.anchor_path),
            "pre_search_expanded": (
                set(entry.pre_search_expanded) if entry.pre_search_expanded is not None else None
            ),
            "parse_error": None,
            **stacks,
        }
    )


def undo(state: EditorState) -> EditorState | None:
    """
    Step back one entry.

    Returns:
        The restored state, or None when the undo stack is empty.
    """
    if not state.undo_stack:
        return None

    previous, *remaining = state.undo_stack
    redo_stack = push(state.redo_stack, snapshot(state), state.history_limit)

    logger.info("undo", undo_depth=len(remaining), redo_depth=len(redo_stack))

    return restore(state, previous, undo_stack=remaining, redo_stack=redo_stack)


def redo(state: EditorState) -> EditorState | None:
    """
    Step forward one entry.

    Returns:
        The restored state, or None when the redo stack is empty.
    """
    if not state.redo_stack:
        return None

    following, *remaining = state.redo_stack
    undo_stack = push(state.undo_stack, snapshot(state), state.history_limit)

    logger.info("redo", undo_depth=len(undo_stack), redo_depth=len(remaining))

    return restore(state, following, undo_stack=undo_stack, redo_stack=remaining)
