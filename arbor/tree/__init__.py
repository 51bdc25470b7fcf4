"""
Tree Module - Document Arena and Structural Operations

Responsible for:
1. Building the id -> node arena from plain values (and back)
2. The JSON text boundary (parse / format / minify)
3. Validated, all-or-nothing structural operations
"""

from arbor.tree.builder import (
    build_document,
    build_parent_map,
    collect_subtree_ids,
    document_to_value,
    get_children,
    node_to_value,
)
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

__all__ = [
    # Builder
    "build_document",
    "document_to_value",
    "node_to_value",
    "build_parent_map",
    "collect_subtree_ids",
    "get_children",
    # Codec
    "parse_json",
    "format_json",
    "minify_json",
    # Operations
    "OperationResult",
    "edit_primitive",
    "rename_key",
    "add_node",
    "delete_node",
    "move_array_item",
    "sort_keys",
]
