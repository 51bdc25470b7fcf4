"""
Tree Builder - Document Arena Assembly

This module converts plain nested values (as produced by the JSON parse
boundary) into a flat arena of identity-bearing nodes, and back.

The arena layout enables:
- Stable node identity across unrelated edits
- Cheap, fully independent snapshots (deep copy of one dict)
- Cascading deletes by walking explicit child ids
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

import structlog

from arbor.models import (
    ArrayNode,
    BooleanNode,
    Document,
    JsonNode,
    NullNode,
    NumberNode,
    ObjectEntry,
    ObjectNode,
    StringNode,
)

logger = structlog.get_logger(__name__)


def new_node_id() -> str:
    """Allocate a globally unique node id."""
    return uuid4().hex


def build_document(value: Any) -> Document:
    """
    Build a document arena from a plain nested value.

    Ids are allocated depth-first: object keys in source order, array
    elements in source order.

    Args:
        value: dict / list / str / int / float / bool / None.

    Returns:
        Document with a fresh id for every nested value.

    Example:
        doc = build_document({"a": 1, "b": [True, None]})
        doc.node_count  # -> 5
    """
    nodes: dict[str, JsonNode] = {}
    root_id = _build_node(value, nodes)

    logger.debug("document_built", root_id=root_id, node_count=len(nodes))

    return Document(root_id=root_id, nodes=nodes)


def _build_node(value: Any, nodes: dict[str, JsonNode]) -> str:
    node_id = new_node_id()

    if isinstance(value, list):
        items = [_build_node(item, nodes) for item in value]
        nodes[node_id] = ArrayNode(id=node_id, items=items)
    elif isinstance(value, dict):
        entries = [
            ObjectEntry(key=str(key), child_id=_build_node(child, nodes))
            for key, child in value.items()
        ]
        nodes[node_id] = ObjectNode(id=node_id, entries=entries)
    elif value is None:
        nodes[node_id] = NullNode(id=node_id)
    # bool is an int subclass, so it must be checked first
    elif isinstance(value, bool):
        nodes[node_id] = BooleanNode(id=node_id, value=value)
    elif isinstance(value, (int, float)):
        nodes[node_id] = NumberNode(id=node_id, value=value)
    else:
        nodes[node_id] = StringNode(id=node_id, value=str(value))

    return node_id


def document_to_value(doc: Document) -> Any:
    """Rebuild the plain nested value rooted at doc.root_id."""
    return node_to_value(doc, doc.root_id)


def node_to_value(doc: Document, node_id: str) -> Any:
    """Rebuild the plain nested value for one subtree."""
    node = doc.get(node_id)
    if node is None:
        return None

    if node.type == "object":
        return {entry.key: node_to_value(doc, entry.child_id) for entry in node.entries}
    if node.type == "array":
        return [node_to_value(doc, child_id) for child_id in node.items]
    return node.value


def get_children(node: JsonNode) -> list[str]:
    """Child ids of a node in document order (empty for scalars)."""
    if node.type == "object":
        return [entry.child_id for entry in node.entries]
    if node.type == "array":
        return list(node.items)
    return []


def build_parent_map(doc: Document) -> dict[str, str]:
    """
    Derive child -> parent links for every node in the arena.

    The root has no entry.
    """
    parents: dict[str, str] = {}
    for node in doc.nodes.values():
        for child_id in get_children(node):
            parents[child_id] = node.id
    return parents


def collect_subtree_ids(doc: Document, node_id: str) -> set[str]:
    """Collect node_id and every descendant id present in the arena."""
    bucket: set[str] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        node = doc.get(current)
        if node is None or current in bucket:
            continue
        bucket.add(current)
        stack.extend(get_children(node))
    return bucket
