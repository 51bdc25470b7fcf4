"""
Search Engine - Ordered Matches Scoped to the Anchor

Matching rules:
- Object keys are matched case-insensitively as substrings; a key match
  records the CHILD id (the value bound to the key), not the object.
- Scalars are matched on their stringified value: "true"/"false", "null",
  numbers in JSON form, strings as-is.
- Traversal is depth-first in document order starting at the anchor root.

The active match is tracked by id, so edits that keep a match alive keep
it selected. Whenever a match becomes active its ancestor chain is added
to the expansion set.
"""

from __future__ import annotations

import json

import structlog

from arbor.models import Document, EditorState, JsonNode
from arbor.tree.builder import build_parent_map

logger = structlog.get_logger(__name__)


def stringify_scalar(node: JsonNode) -> str:
    """Text a scalar is matched against."""
    if node.type == "null":
        return "null"
    if node.type == "boolean":
        return "true" if node.value else "false"
    if node.type == "number":
        return json.dumps(node.value)
    if node.type == "string":
        return node.value
    return ""


def find_matches(doc: Document, query: str, root_id: str | None = None) -> list[str]:
    """
    Find node ids matching query, in depth-first document order.

    Args:
        doc: Document to search.
        query: Case-insensitive substring. Blank queries match nothing.
        root_id: Subtree to search; defaults to the document root.

    Returns:
        Ordered list of matching node ids.
    """
    needle = query.strip().lower()
    if not needle:
        return []

    matches: list[str] = []

    def visit(node_id: str) -> None:
        node = doc.get(node_id)
        if node is None:
            return
        if node.type == "object":
            for entry in node.entries:
                if needle in entry.key.lower():
                    matches.append(entry.child_id)
                visit(entry.child_id)
        elif node.type == "array":
            for child_id in node.items:
                visit(child_id)
        elif needle in stringify_scalar(node).lower():
            matches.append(node.id)

    visit(root_id or doc.root_id)
    return matches


def expand_ancestors(target_id: str, parents: dict[str, str], expanded: set[str]) -> set[str]:
    """Add target_id and every ancestor up to the root to expanded (in place)."""
    current: str | None = target_id
    while current is not None:
        expanded.add(current)
        current = parents.get(current)
    return expanded


def apply_search(
    state: EditorState,
    doc: Document | None = None,
    anchor_path: list[str] | None = None,
) -> EditorState:
    """
    Recompute matches for the current query and anchor.

    Keeps the previously active match if it still matches, otherwise snaps
    to the first match (or -1 when there are none). The active match's
    ancestors and the whole anchor path are added to the expansion set.
    """
    doc = doc if doc is not None else state.doc
    anchor = anchor_path if anchor_path is not None else state.anchor_path

    if doc is None or not state.search_query.strip():
        return state.model_copy(
            update={"search_matches": [], "active_match": -1, "anchor_path": anchor}
        )

    anchor_root = anchor[-1] if anchor else doc.root_id
    matches = find_matches(doc, state.search_query, anchor_root)

    previous_id = state.active_match_id
    if previous_id is not None and previous_id in matches:
        active = matches.index(previous_id)
    else:
        active = 0 if matches else -1

    expanded = set(state.expanded)
    if active >= 0:
        expand_ancestors(matches[active], build_parent_map(doc), expanded)
    expanded.update(anchor)

    logger.debug("search_applied", query=state.search_query, matches=len(matches), active=active)

    return state.model_copy(
        update={
            "search_matches": matches,
            "active_match": active,
            "expanded": expanded,
            "anchor_path": anchor,
        }
    )


def set_search_query(state: EditorState, query: str) -> EditorState:
    """
    Change the query, remembering expansion on entry and restoring it on exit.

    Entering a search (blank -> non-blank) saves the current expansion set;
    clearing it (non-blank -> blank) restores the saved set.
    """
    entering = not state.search_query.strip() and bool(query.strip())
    clearing = bool(state.search_query.strip()) and not query.strip()

    expanded = state.expanded
    pre_search = state.pre_search_expanded
    if entering:
        pre_search = set(state.expanded)
    if clearing and state.pre_search_expanded is not None:
        expanded = set(state.pre_search_expanded)
        pre_search = None

    updated = state.model_copy(
        update={"search_query": query, "expanded": expanded, "pre_search_expanded": pre_search}
    )
    return apply_search(updated)


def move_match(state: EditorState, direction: int) -> EditorState:
    """Cycle the active match forward (+1) or backward (-1) and select it."""
    if not state.search_matches:
        return state

    count = len(state.search_matches)
    index = (state.active_match + direction) % count
    target = state.search_matches[index]

    expanded = set(state.expanded)
    if state.doc is not None:
        expand_ancestors(target, build_parent_map(state.doc), expanded)
    expanded.update(state.anchor_path)

    return state.model_copy(
        update={"active_match": index, "expanded": expanded, "selected_id": target}
    )


def visible_node_ids(state: EditorState) -> set[str] | None:
    """
    Nodes a presentation layer should show in filter mode.

    Union of the anchor path and every match's ancestor chain (match
    included). None when filter mode is off or there is no query.
    """
    if not state.search_filter_only or not state.search_query.strip() or state.doc is None:
        return None

    parents = build_parent_map(state.doc)
    visible = set(state.anchor_path)
    for match_id in state.search_matches:
        expand_ancestors(match_id, parents, visible)
    return visible
