"""
Anchor Navigator - Focused Subtree Tracking

The anchor is a root-to-node id path that scopes search and bulk
expand/collapse to one subtree. After every structural mutation the path
is rebuilt from the focused node; if that node is gone the anchor falls
back to [root_id].
"""

from __future__ import annotations

import structlog

from arbor.engine.search import apply_search
from arbor.exceptions import NodeNotFoundError
from arbor.models import Document, EditorState
from arbor.tree.builder import build_parent_map, collect_subtree_ids

logger = structlog.get_logger(__name__)


def build_anchor_path(doc: Document, target_id: str) -> list[str]:
    """
    Root-to-target id path via the parent map.

    Returns:
        The path, or [] if target_id is not reachable from the root.
    """
    if not doc.contains(target_id):
        return []

    parents = build_parent_map(doc)
    path: list[str] = []
    current: str | None = target_id
    while current is not None:
        path.append(current)
        current = parents.get(current)
    path.reverse()

    if path[0] != doc.root_id:
        return []
    return path


def resolve_anchor_path(doc: Document, anchor_path: list[str]) -> list[str]:
    """Re-validate an anchor path against a (possibly mutated) document."""
    if not anchor_path:
        return [doc.root_id]
    path = build_anchor_path(doc, anchor_path[-1])
    return path or [doc.root_id]


def nearest_surviving(doc: Document, node_id: str | None, old_parents: dict[str, str]) -> str:
    """
    Closest id on node_id's old ancestor chain that still exists in doc.

    Falls back to the document root when nothing survives.
    """
    current = node_id
    while current is not None:
        if doc.contains(current):
            return current
        current = old_parents.get(current)
    return doc.root_id


def anchor_to(state: EditorState, node_id: str | None = None) -> EditorState:
    """
    Focus the anchor on node_id (None = document root).

    Unreachable targets leave the state unchanged. The selection is kept
    if it lies inside the new subtree, otherwise it moves to the target.
    """
    doc = state.doc
    if doc is None:
        return state

    target = node_id or doc.root_id
    path = build_anchor_path(doc, target)
    if not path:
        logger.info("anchor_target_unreachable", node_id=target)
        return state

    expanded = set(state.expanded) | set(path)
    subtree = collect_subtree_ids(doc, path[-1])
    selected = state.selected_id if state.selected_id in subtree else path[-1]

    logger.debug("anchored", node_id=target, depth=len(path))

    updated = state.model_copy(
        update={"anchor_path": path, "expanded": expanded, "selected_id": selected}
    )
    return apply_search(updated, doc, path)


def expand_all(state: EditorState) -> EditorState:
    """Expand every node under the anchor root (and the anchor path itself)."""
    if state.doc is None:
        return state
    expanded = collect_subtree_ids(state.doc, state.anchor_root or state.doc.root_id)
    expanded.update(state.anchor_path)
    return state.model_copy(update={"expanded": expanded})


def collapse_all(state: EditorState) -> EditorState:
    """Collapse everything except the anchor path."""
    if state.doc is None:
        return state
    expanded = set(state.anchor_path) if state.anchor_path else {state.doc.root_id}
    return state.model_copy(update={"expanded": expanded})


def breadcrumbs(doc: Document, path: list[str]) -> list[str]:
    """
    Human-readable labels for each step of an id path.

    The root is labelled "root"; object children by key, array elements
    by "[index]".
    """
    labels: list[str] = []
    for index, node_id in enumerate(path):
        if index == 0:
            labels.append("root")
            continue
        parent = doc.get(path[index - 1])
        if parent is not None and parent.type == "object":
            entry = parent.entry_for(node_id)
            labels.append(entry.key if entry else node_id)
        elif parent is not None and parent.type == "array" and node_id in parent.items:
            labels.append(f"[{parent.items.index(node_id)}]")
        else:
            labels.append(node_id)
    return labels


def json_pointer(doc: Document, node_id: str) -> str | None:
    """RFC 6901 pointer for a node, or None if unreachable."""
    path = build_anchor_path(doc, node_id)
    if not path:
        return None

    tokens: list[str] = []
    for parent_id, child_id in zip(path, path[1:]):
        parent = doc.require(parent_id)
        if parent.type == "object":
            entry = parent.entry_for(child_id)
            key = entry.key if entry else ""
            tokens.append(key.replace("~", "~0").replace("/", "~1"))
        elif parent.type == "array":
            tokens.append(str(parent.items.index(child_id)))
    return "".join(f"/{token}" for token in tokens)


def resolve_pointer(doc: Document, pointer: str) -> str:
    """
    Node id addressed by an RFC 6901 pointer.

    Raises:
        NodeNotFoundError: If any token does not resolve.
    """
    if pointer and not pointer.startswith("/"):
        raise NodeNotFoundError(f"Invalid JSON pointer: {pointer!r}")

    node_id = doc.root_id
    for raw in pointer.split("/")[1:]:
        token = raw.replace("~1", "/").replace("~0", "~")
        node = doc.require(node_id)
        if node.type == "object":
            entry = next((e for e in node.entries if e.key == token), None)
            if entry is None:
                raise NodeNotFoundError(f"No key {token!r} at {pointer}")
            node_id = entry.child_id
        elif node.type == "array":
            if not token.isdigit() or int(token) >= len(node.items):
                raise NodeNotFoundError(f"No index {token!r} at {pointer}")
            node_id = node.items[int(token)]
        else:
            raise NodeNotFoundError(f"Cannot descend into {node.type} at {pointer}")
    return node_id
