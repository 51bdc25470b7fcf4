"""
Session Bundles - Persistable Editor State

export_session() extracts the parts of EditorState worth keeping between
runs; restore_session() rebuilds an equivalent state from them. Neither
performs I/O: arbor.storage decides where bundles live.
"""

from __future__ import annotations

import structlog

from arbor.config import EditorConfig
from arbor.engine.anchor import resolve_anchor_path
from arbor.engine.search import apply_search
from arbor.exceptions import StorageError, TreeIntegrityError
from arbor.models import EditorState, SessionBundle, SnippetMeta

logger = structlog.get_logger(__name__)


def export_session(state: EditorState) -> SessionBundle:
    """Capture document, text mirror, view state and output settings."""
    return SessionBundle(
        raw_text=state.raw_text,
        last_valid_text=state.last_valid_text,
        doc=state.doc.model_copy(deep=True) if state.doc else None,
        expanded=sorted(state.expanded),
        selected_id=state.selected_id,
        anchor_path=list(state.anchor_path),
        indent=state.indent,
        output_mode=state.output_mode,
        search_filter_only=state.search_filter_only,
    )


def restore_session(
    bundle: SessionBundle,
    config: EditorConfig | None = None,
    snippets: list[SnippetMeta] | None = None,
    snippet_contents: dict[str, str] | None = None,
) -> EditorState:
    """
    Rebuild editor state from a bundle.

    History starts empty and the search query is cleared. Dangling
    selection or anchor ids are repaired against the restored document.

    Raises:
        StorageError: If the bundled document violates the tree invariants.
    """
    config = config or EditorConfig()
    doc = bundle.doc

    if doc is not None:
        try:
            doc.validate_tree()
        except TreeIntegrityError as e:
            raise StorageError(f"Stored document is corrupt: {e}") from e

    anchor_path: list[str] = []
    selected_id = bundle.selected_id
    expanded = set(bundle.expanded)
    if doc is not None:
        anchor_path = resolve_anchor_path(doc, bundle.anchor_path)
        if not doc.contains(selected_id):
            selected_id = anchor_path[-1]
        expanded = {node_id for node_id in expanded if doc.contains(node_id)} | set(anchor_path)

    state = EditorState(
        raw_text=bundle.raw_text,
        last_valid_text=bundle.last_valid_text,
        doc=doc,
        expanded=expanded,
        selected_id=selected_id,
        anchor_path=anchor_path,
        indent=bundle.indent,
        output_mode=bundle.output_mode,
        search_filter_only=bundle.search_filter_only,
        auto_parse=config.auto_parse,
        auto_save=config.auto_save,
        history_limit=config.history_limit,
        snippets=list(snippets or []),
        snippet_contents=dict(snippet_contents or {}),
    )

    logger.info(
        "session_restored",
        node_count=doc.node_count if doc else 0,
        snippets=len(state.snippets),
    )

    return apply_search(state, doc, anchor_path)
