"""
Editor - Single Transition Function

`reduce(state, command)` is the only way editor state changes. It resolves
a command against the current state and returns a NEW state; the previous
state (and every history snapshot) is left untouched.

Rejected commands return the previous state with `notice` set; no-op
conditions (empty undo stack, move at an array boundary, anchor to a
missing node) return the previous state with an info notice or none.

Usage:
    editor = Editor()
    editor.dispatch(LoadText(text='{"a": 1}'))
    editor.dispatch(AddNode(parent_id=editor.state.doc.root_id,
                            parent_kind="object", key="b", new_type="string"))
    editor.dispatch(Undo())
    print(editor.output)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog

from arbor.config import EditorConfig
from arbor.engine import history
from arbor.engine.anchor import (
    anchor_to,
    collapse_all,
    expand_all,
    nearest_surviving,
    resolve_anchor_path,
)
from arbor.engine.commands import (
    Command,
    DeleteSnippet,
    LoadSnippet,
    OverwriteSnippet,
    Redo,
    RenameSnippet,
    ResetEditor,
    SaveSnippet,
    SetIndent,
    SetRawText,
    SetSelected,
    SortKeys,
    ToggleExpanded,
    ToggleFilterMode,
    Undo,
)
from arbor.engine.search import apply_search, move_match, set_search_query
from arbor.exceptions import BoundaryMoveError, DocumentParseError, ValidationError
from arbor.models import Document, EditorState, Notice, ParseErrorInfo, Severity, SnippetMeta
from arbor.tree.builder import build_document, build_parent_map, document_to_value
from arbor.tree.codec import format_json, minify_json, parse_json
from arbor.tree.operations import (
    OperationResult,
    add_node,
    delete_node,
    edit_primitive,
    move_array_item,
    rename_key,
    sort_keys,
)

logger = structlog.get_logger(__name__)

SAMPLE_DOCUMENT: dict[str, Any] = {
    "profile": {
        "name": "Avery Analyst",
        "team": "Product",
        "active": True,
    },
    "features": ["search", "edit", "undo"],
    "stats": {"saves": 12, "snippets": 3, "lastEdited": "today"},
}

NO_DOCUMENT = "Load or parse JSON first."

_SAMPLE = object()


# =============================================================================
# State Construction
# =============================================================================


def initial_state(config: EditorConfig | None = None, value: Any = _SAMPLE) -> EditorState:
    """
    Fresh editor state holding the sample document (or `value`).

    No history is recorded for the initial document.
    """
    config = config or EditorConfig()
    if value is _SAMPLE:
        value = SAMPLE_DOCUMENT

    doc = build_document(value)
    text = format_json(value, config.indent)

    return EditorState(
        raw_text=text,
        last_valid_text=text,
        doc=doc,
        expanded={doc.root_id},
        selected_id=doc.root_id,
        anchor_path=[doc.root_id],
        indent=config.indent,
        output_mode=config.output_mode,
        auto_parse=config.auto_parse,
        auto_save=config.auto_save,
        history_limit=config.history_limit,
    )


def render_output(state: EditorState) -> str:
    """Serialized document in the current output mode."""
    if state.doc is None:
        return state.raw_text
    value = document_to_value(state.doc)
    if state.output_mode == "minified":
        return minify_json(value)
    return format_json(value, state.indent)


def _with_notice(state: EditorState, severity: Severity, message: str) -> EditorState:
    return state.model_copy(update={"notice": Notice(severity=severity, message=message)})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Parsing
# =============================================================================


def apply_parse(state: EditorState, text: str) -> EditorState:
    """
    Replace the document with parsed text, recording history.

    On a parse failure the last valid document and text are kept and only
    `parse_error` (plus an error notice) changes.
    """
    try:
        value = parse_json(text)
    except DocumentParseError as e:
        logger.warning("parse_rejected", error=e.message, line=e.line, column=e.column)
        error = ParseErrorInfo(message=e.message, line=e.line, column=e.column)
        return state.model_copy(
            update={
                "parse_error": error,
                "notice": Notice(severity="error", message=str(e)),
            }
        )

    doc = build_document(value)
    formatted = format_json(value, state.indent)

    base = state.model_copy(
        update={
            "doc": doc,
            "parse_error": None,
            "raw_text": formatted,
            "last_valid_text": formatted,
            "expanded": {doc.root_id},
            "selected_id": doc.root_id,
            "anchor_path": [doc.root_id],
            "pre_search_expanded": {doc.root_id} if state.search_query.strip() else None,
            "notice": Notice(severity="success", message="JSON parsed."),
        }
    )

    logger.info("document_loaded", node_count=doc.node_count)

    return history.record(state, apply_search(base, doc, [doc.root_id]))


# =============================================================================
# Structural Mutations
# =============================================================================


def finalize_document_change(
    state: EditorState,
    doc: Document,
    focus_id: str | None = None,
) -> EditorState:
    """
    Commit a mutated document: re-derive text, repair anchor and
    selection, re-run search, record history.
    """
    formatted = format_json(document_to_value(doc), state.indent)
    anchor_path = resolve_anchor_path(doc, state.anchor_path)

    if doc.contains(focus_id):
        selected = focus_id
    elif state.doc is not None:
        selected = nearest_surviving(doc, state.selected_id, build_parent_map(state.doc))
    else:
        selected = doc.root_id

    expanded = {node_id for node_id in state.expanded if doc.contains(node_id)}
    pre_search = state.pre_search_expanded
    if pre_search is not None:
        pre_search = {node_id for node_id in pre_search if doc.contains(node_id)}

    base = state.model_copy(
        update={
            "doc": doc,
            "raw_text": formatted,
            "last_valid_text": formatted,
            "parse_error": None,
            "selected_id": selected,
            "expanded": expanded,
            "pre_search_expanded": pre_search,
            "anchor_path": anchor_path,
        }
    )
    return history.record(state, apply_search(base, doc, anchor_path))


def _mutate(state: EditorState, operation: Callable[[Document], OperationResult]) -> EditorState:
    if state.doc is None:
        return _with_notice(state, "error", NO_DOCUMENT)

    try:
        result = operation(state.doc)
    except BoundaryMoveError as e:
        logger.debug("operation_noop", reason=str(e))
        return state
    except ValidationError as e:
        logger.warning("operation_rejected", error=str(e), kind=type(e).__name__)
        return _with_notice(state, "error", str(e))

    return finalize_document_change(state, result.document, result.focus_id)


def _sort(state: EditorState, command: SortKeys) -> EditorState:
    if state.doc is None:
        return _with_notice(state, "error", NO_DOCUMENT)

    if command.scope == "all":
        target = None
    else:
        target = command.node_id or state.selected_id
        if target is None:
            return _with_notice(state, "info", "Select a node to sort.")

    updated = _mutate(state, lambda doc: sort_keys(doc, target))
    if updated.doc is state.doc:
        return updated
    # Sorting keeps the current selection rather than focusing the subtree
    if state.selected_id and updated.doc.contains(state.selected_id):
        updated = updated.model_copy(update={"selected_id": state.selected_id})
    return updated


# =============================================================================
# History
# =============================================================================


def _undo(state: EditorState, command: Undo) -> EditorState:
    restored = history.undo(state)
    if restored is None:
        return _with_notice(state, "info", "Nothing to undo.")
    return apply_search(restored, restored.doc, restored.anchor_path)


def _redo(state: EditorState, command: Redo) -> EditorState:
    restored = history.redo(state)
    if restored is None:
        return _with_notice(state, "info", "Nothing to redo.")
    return apply_search(restored, restored.doc, restored.anchor_path)


# =============================================================================
# View / Settings
# =============================================================================


def _set_raw_text(state: EditorState, command: SetRawText) -> EditorState:
    if not state.auto_parse:
        return state.model_copy(update={"raw_text": command.text, "parse_error": None})

    parsed = apply_parse(state, command.text)
    if parsed.parse_error is not None:
        # Keep the draft in the buffer; document and last valid text stay put
        return parsed.model_copy(update={"raw_text": command.text})
    return parsed


def _set_selected(state: EditorState, command: SetSelected) -> EditorState:
    if command.node_id is not None and (
        state.doc is None or not state.doc.contains(command.node_id)
    ):
        logger.debug("select_target_missing", node_id=command.node_id)
        return state
    return state.model_copy(update={"selected_id": command.node_id})


def _toggle_expanded(state: EditorState, command: ToggleExpanded) -> EditorState:
    if state.doc is None or not state.doc.contains(command.node_id):
        logger.debug("expand_target_missing", node_id=command.node_id)
        return state
    expanded = set(state.expanded)
    expanded.symmetric_difference_update({command.node_id})
    return state.model_copy(update={"expanded": expanded})


def _set_indent(state: EditorState, command: SetIndent) -> EditorState:
    if state.doc is None:
        return state.model_copy(update={"indent": command.indent})
    formatted = format_json(document_to_value(state.doc), command.indent)
    return state.model_copy(
        update={"indent": command.indent, "raw_text": formatted, "last_valid_text": formatted}
    )


def _toggle_filter(state: EditorState, command: ToggleFilterMode) -> EditorState:
    return apply_search(state.model_copy(update={"search_filter_only": command.enabled}))


def _reset(state: EditorState, command: ResetEditor) -> EditorState:
    logger.info("editor_reset")
    config = EditorConfig(history_limit=state.history_limit, auto_save=state.auto_save)
    return initial_state(config)


# =============================================================================
# Snippets
# =============================================================================


def _save_snippet(state: EditorState, command: SaveSnippet) -> EditorState:
    if state.doc is None:
        return _with_notice(state, "error", NO_DOCUMENT)

    snippet = SnippetMeta(
        id=uuid4().hex,
        name=command.name.strip() or "Untitled snippet",
        updated_at=_now(),
    )
    logger.info("snippet_saved", snippet_id=snippet.id, chars=len(state.raw_text))

    return state.model_copy(
        update={
            "snippets": [snippet, *state.snippets],
            "snippet_contents": {**state.snippet_contents, snippet.id: state.raw_text},
            "notice": Notice(severity="success", message="Snippet saved locally."),
        }
    )


def _load_snippet(state: EditorState, command: LoadSnippet) -> EditorState:
    text = state.snippet_contents.get(command.snippet_id)
    if text is None:
        return _with_notice(state, "info", "Snippet not found.")
    return apply_parse(state, text)


def _rename_snippet(state: EditorState, command: RenameSnippet) -> EditorState:
    snippets = [
        s.model_copy(update={"name": command.name, "updated_at": _now()})
        if s.id == command.snippet_id
        else s
        for s in state.snippets
    ]
    return state.model_copy(update={"snippets": snippets})


def _delete_snippet(state: EditorState, command: DeleteSnippet) -> EditorState:
    contents = {k: v for k, v in state.snippet_contents.items() if k != command.snippet_id}
    snippets = [s for s in state.snippets if s.id != command.snippet_id]
    logger.info("snippet_deleted", snippet_id=command.snippet_id)
    return state.model_copy(update={"snippets": snippets, "snippet_contents": contents})


def _overwrite_snippet(state: EditorState, command: OverwriteSnippet) -> EditorState:
    if state.doc is None:
        return _with_notice(state, "error", NO_DOCUMENT)
    if not any(s.id == command.snippet_id for s in state.snippets):
        return state

    snippets = [
        s.model_copy(update={"updated_at": _now()}) if s.id == command.snippet_id else s
        for s in state.snippets
    ]
    return state.model_copy(
        update={
            "snippets": snippets,
            "snippet_contents": {**state.snippet_contents, command.snippet_id: state.raw_text},
            "notice": Notice(severity="success", message="Snippet updated."),
        }
    )


# =============================================================================
# Dispatch
# =============================================================================

_HANDLERS: dict[str, Callable[[EditorState, Any], EditorState]] = {
    "set_raw_text": _set_raw_text,
    "parse_text": lambda s, c: apply_parse(s, s.raw_text),
    "load_text": lambda s, c: apply_parse(s, c.text),
    "edit_primitive": lambda s, c: _mutate(
        s, lambda d: edit_primitive(d, c.node_id, c.value, c.new_type)
    ),
    "rename_key": lambda s, c: _mutate(
        s, lambda d: rename_key(d, c.parent_id, c.child_id, c.new_key)
    ),
    "add_node": lambda s, c: _mutate(
        s, lambda d: add_node(d, c.parent_id, c.parent_kind, c.new_type, c.key)
    ),
    "delete_node": lambda s, c: _mutate(s, lambda d: delete_node(d, c.parent_id, c.child_id)),
    "move_array_item": lambda s, c: _mutate(
        s, lambda d: move_array_item(d, c.parent_id, c.child_id, c.direction)
    ),
    "sort_keys": _sort,
    "undo": _undo,
    "redo": _redo,
    "set_selected": _set_selected,
    "toggle_expanded": _toggle_expanded,
    "expand_all": lambda s, c: expand_all(s),
    "collapse_all": lambda s, c: collapse_all(s),
    "set_search_query": lambda s, c: set_search_query(s, c.query),
    "move_match": lambda s, c: move_match(s, c.direction),
    "toggle_filter_mode": _toggle_filter,
    "anchor_to": lambda s, c: anchor_to(s, c.node_id),
    "set_output_mode": lambda s, c: s.model_copy(update={"output_mode": c.mode}),
    "set_indent": _set_indent,
    "set_auto_parse": lambda s, c: s.model_copy(update={"auto_parse": c.enabled}),
    "set_auto_save": lambda s, c: s.model_copy(update={"auto_save": c.enabled}),
    "set_notice": lambda s, c: s.model_copy(update={"notice": c.notice}),
    "reset_editor": _reset,
    "save_snippet": _save_snippet,
    "load_snippet": _load_snippet,
    "rename_snippet": _rename_snippet,
    "delete_snippet": _delete_snippet,
    "overwrite_snippet": _overwrite_snippet,
}


def reduce(state: EditorState, command: Command) -> EditorState:
    """
    Apply one command and return the next state.

    The notice from the previous command is cleared first, so
    `next_state.notice` always describes this command's outcome.
    """
    handler = _HANDLERS.get(command.type)
    if handler is None:
        logger.warning("unknown_command", type=command.type)
        return state

    logger.debug("command_dispatched", type=command.type)

    return handler(state.model_copy(update={"notice": None}), command)


class Editor:
    """
    Holder for the single current editor state.

    Each dispatch replaces the state wholesale with reduce()'s result.

    Attributes:
        state: The current EditorState.
    """

    def __init__(self, state: EditorState | None = None, config: EditorConfig | None = None):
        self.state = state or initial_state(config)

    def dispatch(self, command: Command) -> EditorState:
        self.state = reduce(self.state, command)
        return self.state

    @property
    def output(self) -> str:
        return render_output(self.state)

    @property
    def value(self) -> Any:
        return document_to_value(self.state.doc) if self.state.doc is not None else None

    @property
    def can_undo(self) -> bool:
        return bool(self.state.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.state.redo_stack)
