"""
Document Operations - Structural and Value Mutations

Every operation takes a Document and returns an OperationResult holding a
NEW document plus the id that should receive focus. The input document is
never mutated: each operation works on a deep copy and either completes
fully or raises a ValidationError before anything is handed back.

Operations:
- edit_primitive: replace a scalar payload/type, keeping the node id
- rename_key: rename an object entry, keeping the child id
- add_node: append a default-valued child to an object or array
- delete_node: remove an entry and cascade-delete its subtree
- move_array_item: swap an array element with its neighbour
- sort_keys: recursively order object entries by key
"""

from __future__ import annotations

import functools
import locale
import math
from dataclasses import dataclass
from typing import Any

import structlog

from arbor.exceptions import (
    BoundaryMoveError,
    DuplicateKeyError,
    EmptyKeyError,
    InvalidNumberError,
    KindMismatchError,
    NodeNotFoundError,
)
from arbor.models import (
    ArrayNode,
    BooleanNode,
    ContainerType,
    Document,
    JsonNode,
    NodeType,
    NullNode,
    NumberNode,
    ObjectEntry,
    ObjectNode,
    StringNode,
)
from arbor.tree.builder import collect_subtree_ids, new_node_id

logger = structlog.get_logger(__name__)


@dataclass
class OperationResult:
    """A successfully mutated document and the node to focus."""

    document: Document
    focus_id: str


# =============================================================================
# Helpers
# =============================================================================


def _require_object(doc: Document, node_id: str) -> ObjectNode:
    node = doc.require(node_id)
    if node.type != "object":
        raise KindMismatchError(f"Node {node_id} is {node.type}, expected object")
    return node


def _require_array(doc: Document, node_id: str) -> ArrayNode:
    node = doc.require(node_id)
    if node.type != "array":
        raise KindMismatchError(f"Node {node_id} is {node.type}, expected array")
    return node


def _clean_key(key: str | None) -> str:
    trimmed = (key or "").strip()
    if not trimmed:
        raise EmptyKeyError("Key is required for object properties.")
    return trimmed


def is_json_number(value: Any) -> bool:
    """True for finite ints and floats. bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and not math.isfinite(value))


def default_node(node_id: str, node_type: NodeType) -> JsonNode:
    """Create a node of the given type with its empty/zero payload."""
    if node_type == "object":
        return ObjectNode(id=node_id)
    if node_type == "array":
        return ArrayNode(id=node_id)
    if node_type == "string":
        return StringNode(id=node_id, value="")
    if node_type == "number":
        return NumberNode(id=node_id, value=0)
    if node_type == "boolean":
        return BooleanNode(id=node_id, value=False)
    if node_type == "null":
        return NullNode(id=node_id)
    raise KindMismatchError(f"Unknown node type: {node_type}")


# =============================================================================
# Operations
# =============================================================================


def edit_primitive(
    doc: Document,
    node_id: str,
    value: Any,
    new_type: NodeType | None = None,
) -> OperationResult:
    """
    Replace a scalar node's payload, optionally changing its type.

    The node keeps its id. Changing type discards the old payload.

    Args:
        doc: Current document.
        node_id: Scalar node to edit.
        value: New payload. Coerced for string/boolean, validated for number.
        new_type: Target type; defaults to the node's current type.

    Raises:
        NodeNotFoundError: Unknown node id.
        KindMismatchError: Node (or target type) is a container.
        InvalidNumberError: Numeric edit with a non-finite or non-numeric value.
    """
    current = doc.require(node_id)
    if current.type in ("object", "array"):
        raise KindMismatchError(f"Node {node_id} is a container; only scalars can be edited")

    target_type = new_type or current.type

    if target_type == "string":
        replacement: JsonNode = StringNode(id=node_id, value="" if value is None else str(value))
    elif target_type == "number":
        if not is_json_number(value):
            raise InvalidNumberError("Numbers must be valid JSON numbers.")
        replacement = NumberNode(id=node_id, value=value)
    elif target_type == "boolean":
        replacement = BooleanNode(id=node_id, value=bool(value))
    elif target_type == "null":
        replacement = NullNode(id=node_id)
    else:
        raise KindMismatchError(f"Cannot convert a scalar to {target_type}")

    updated = doc.model_copy(deep=True)
    updated.nodes[node_id] = replacement

    logger.debug("primitive_edited", node_id=node_id, type=target_type)
    return OperationResult(document=updated, focus_id=node_id)


def rename_key(doc: Document, parent_id: str, child_id: str, new_key: str) -> OperationResult:
    """
    Rename the entry of parent_id that points at child_id.

    Raises:
        EmptyKeyError: Key blank after trimming.
        DuplicateKeyError: Another entry already uses the key.
        KindMismatchError: Parent is not an object.
        NodeNotFoundError: Parent unknown or child not bound in it.
    """
    trimmed = (new_key or "").strip()
    if not trimmed:
        raise EmptyKeyError("Key cannot be empty.")

    updated = doc.model_copy(deep=True)
    parent = _require_object(updated, parent_id)

    for entry in parent.entries:
        if entry.key == trimmed and entry.child_id != child_id:
            raise DuplicateKeyError("Keys must be unique within the object.")

    target = parent.entry_for(child_id)
    if target is None:
        raise NodeNotFoundError(f"Node {child_id} is not a property of {parent_id}")

    old_key = target.key
    target.key = trimmed

    logger.debug("key_renamed", parent_id=parent_id, old_key=old_key, new_key=trimmed)
    return OperationResult(document=updated, focus_id=child_id)


def add_node(
    doc: Document,
    parent_id: str,
    parent_kind: ContainerType,
    new_type: NodeType,
    key: str | None = None,
) -> OperationResult:
    """
    Append a new default-valued node to an object or array.

    Object parents need a non-blank key not already in use; array parents
    get the new element at the end.

    Raises:
        NodeNotFoundError: Unknown parent.
        KindMismatchError: parent_kind does not match the parent node.
        EmptyKeyError / DuplicateKeyError: Bad key for an object parent.
    """
    updated = doc.model_copy(deep=True)
    child_id = new_node_id()

    if parent_kind == "object":
        parent = _require_object(updated, parent_id)
        clean = _clean_key(key)
        if clean in parent.keys:
            raise DuplicateKeyError("Duplicate key inside this object.")
        updated.nodes[child_id] = default_node(child_id, new_type)
        parent.entries.append(ObjectEntry(key=clean, child_id=child_id))
    elif parent_kind == "array":
        array = _require_array(updated, parent_id)
        updated.nodes[child_id] = default_node(child_id, new_type)
        array.items.append(child_id)
    else:
        raise KindMismatchError(f"Unknown parent kind: {parent_kind}")

    logger.debug("node_added", parent_id=parent_id, child_id=child_id, type=new_type)
    return OperationResult(document=updated, focus_id=child_id)


def delete_node(doc: Document, parent_id: str, child_id: str) -> OperationResult:
    """
    Detach child_id from parent_id and remove its whole subtree.

    Raises:
        NodeNotFoundError: Parent unknown or child not bound in it.
        KindMismatchError: Parent is a scalar.
    """
    updated = doc.model_copy(deep=True)
    parent = updated.require(parent_id)

    if parent.type == "object":
        if parent.entry_for(child_id) is None:
            raise NodeNotFoundError(f"Node {child_id} is not a property of {parent_id}")
        parent.entries = [e for e in parent.entries if e.child_id != child_id]
    elif parent.type == "array":
        if child_id not in parent.items:
            raise NodeNotFoundError(f"Node {child_id} is not an element of {parent_id}")
        parent.items = [item for item in parent.items if item != child_id]
    else:
        raise KindMismatchError(f"Node {parent_id} is {parent.type} and has no children")

    removed = collect_subtree_ids(updated, child_id)
    for node_id in removed:
        del updated.nodes[node_id]

    logger.debug("node_deleted", parent_id=parent_id, child_id=child_id, removed=len(removed))
    return OperationResult(document=updated, focus_id=parent_id)


def move_array_item(doc: Document, parent_id: str, child_id: str, direction: int) -> OperationResult:
    """
    Swap an array element with its neighbour (-1 = earlier, +1 = later).

    Raises:
        BoundaryMoveError: Element already at the requested end.
        NodeNotFoundError / KindMismatchError: Bad target.
    """
    if direction not in (-1, 1):
        raise KindMismatchError(f"Direction must be -1 or 1, got {direction}")

    updated = doc.model_copy(deep=True)
    array = _require_array(updated, parent_id)

    try:
        index = array.items.index(child_id)
    except ValueError:
        raise NodeNotFoundError(f"Node {child_id} is not an element of {parent_id}") from None

    target = index + direction
    if target < 0 or target >= len(array.items):
        raise BoundaryMoveError("Item is already at the edge of the array.")

    items = list(array.items)
    items[index], items[target] = items[target], items[index]
    array.items = items

    logger.debug("array_item_moved", parent_id=parent_id, from_index=index, to_index=target)
    return OperationResult(document=updated, focus_id=child_id)


def _compare_keys(a: str, b: str) -> int:
    # Case-folded order first; the exact text breaks ties so the order is total
    folded = locale.strcoll(a.casefold(), b.casefold())
    if folded:
        return folded
    collated = locale.strcoll(a, b)
    if collated:
        return collated
    return (a > b) - (a < b)


key_order = functools.cmp_to_key(_compare_keys)


def sort_keys(doc: Document, node_id: str | None = None) -> OperationResult:
    """
    Recursively sort object entries by key.

    Arrays keep their element order, but objects nested inside them are
    sorted too. Idempotent.

    Args:
        doc: Current document.
        node_id: Subtree to sort; None sorts the whole document.
    """
    start = node_id or doc.root_id
    updated = doc.model_copy(deep=True)
    updated.require(start)

    sorted_objects = 0
    stack = [start]
    while stack:
        node = updated.get(stack.pop())
        if node is None:
            continue
        if node.type == "object":
            node.entries = sorted(node.entries, key=lambda e: key_order(e.key))
            sorted_objects += 1
            stack.extend(entry.child_id for entry in node.entries)
        elif node.type == "array":
            stack.extend(node.items)

    logger.debug("keys_sorted", node_id=start, objects=sorted_objects)
    return OperationResult(document=updated, focus_id=start)
