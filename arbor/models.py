"""
Arbor Data Models

Pydantic models for the document arena, history snapshots and editor state.
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from arbor.exceptions import NodeNotFoundError, TreeIntegrityError

NodeType = Literal["object", "array", "string", "number", "boolean", "null"]
ContainerType = Literal["object", "array"]
OutputMode = Literal["pretty", "minified"]
Severity = Literal["success", "error", "info"]


# =============================================================================
# Node Models
# =============================================================================


class ObjectEntry(BaseModel):
    """One key -> child binding inside an object node."""

    key: str
    child_id: str


class ObjectNode(BaseModel):
    """An object node. Entry order is preserved on serialize."""

    id: str
    type: Literal["object"] = "object"
    entries: list[ObjectEntry] = Field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return [entry.key for entry in self.entries]

    def entry_for(self, child_id: str) -> ObjectEntry | None:
        for entry in self.entries:
            if entry.child_id == child_id:
                return entry
        return None


class ArrayNode(BaseModel):
    """An array node holding ordered child ids."""

    id: str
    type: Literal["array"] = "array"
    items: list[str] = Field(default_factory=list)


class StringNode(BaseModel):
    id: str
    type: Literal["string"] = "string"
    value: str = ""


class NumberNode(BaseModel):
    """A finite JSON number. ints stay ints, floats stay floats."""

    id: str
    type: Literal["number"] = "number"
    value: int | float = 0

    @field_validator("value", mode="before")
    @classmethod
    def _require_finite(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Expected a number, got {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("Numbers must be finite")
        return value


class BooleanNode(BaseModel):
    id: str
    type: Literal["boolean"] = "boolean"
    value: bool = False


class NullNode(BaseModel):
    id: str
    type: Literal["null"] = "null"
    value: None = None


JsonNode = Annotated[
    Union[ObjectNode, ArrayNode, StringNode, NumberNode, BooleanNode, NullNode],
    Field(discriminator="type"),
]

ScalarNode = Union[StringNode, NumberNode, BooleanNode, NullNode]


# =============================================================================
# Document Model
# =============================================================================


class Document(BaseModel):
    """
    Flat arena of identity-bearing nodes plus the root identifier.

    Nodes reference each other only by id, never by object reference,
    so a deep copy of the arena is a fully independent document.
    """

    root_id: str
    nodes: dict[str, JsonNode] = Field(default_factory=dict)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> JsonNode:
        return self.require(self.root_id)

    def get(self, node_id: str | None) -> JsonNode | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def require(self, node_id: str) -> JsonNode:
        """Resolve a node id or raise NodeNotFoundError."""
        node = self.nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node not found: {node_id}")
        return node

    def contains(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self.nodes

    def validate_tree(self) -> None:
        """
        Check the strict-tree invariants.

        - root present and never referenced as a child
        - every child id exists and has exactly one parent
        - object keys unique within their object
        - no node outside the set reachable from the root

        Raises:
            TreeIntegrityError: On the first violation found.
        """
        if self.root_id not in self.nodes:
            raise TreeIntegrityError(f"Root {self.root_id} missing from nodes")

        seen: set[str] = set()
        stack = [self.root_id]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                raise TreeIntegrityError(f"Node {node_id} has more than one parent")
            seen.add(node_id)
            node = self.nodes.get(node_id)
            if node is None:
                raise TreeIntegrityError(f"Dangling child reference: {node_id}")

            if node.type == "object":
                keys = node.keys
                if len(keys) != len(set(keys)):
                    raise TreeIntegrityError(f"Duplicate keys in object {node_id}")
                stack.extend(entry.child_id for entry in node.entries)
            elif node.type == "array":
                stack.extend(node.items)

        orphans = set(self.nodes) - seen
        if orphans:
            raise TreeIntegrityError(f"{len(orphans)} orphaned node(s) retained")


# =============================================================================
# Editor Models
# =============================================================================


class ParseErrorInfo(BaseModel):
    """Human-readable parse failure with 1-based position when known."""

    message: str
    line: int | None = None
    column: int | None = None


class Notice(BaseModel):
    """User-facing outcome of a command."""

    severity: Severity
    message: str


class SnippetMeta(BaseModel):
    """Metadata about a saved snippet. Content lives in EditorState."""

    id: str
    name: str
    updated_at: str


class HistoryEntry(BaseModel):
    """Immutable snapshot of editor state for undo/redo."""

    model_config = ConfigDict(frozen=True)

    doc: Document | None
    raw_text: str
    expanded: list[str] = Field(default_factory=list)
    selected_id: str | None = None
    pre_search_expanded: list[str] | None = None
    anchor_path: list[str] = Field(default_factory=list)


class EditorState(BaseModel):
    """
    Complete editor state.

    Treated as an immutable value: transitions build a new state with
    model_copy(update=...) and never mutate a state or its document.
    """

    raw_text: str = ""
    last_valid_text: str = ""
    doc: Document | None = None
    parse_error: ParseErrorInfo | None = None

    # View state
    expanded: set[str] = Field(default_factory=set)
    selected_id: str | None = None
    anchor_path: list[str] = Field(default_factory=list)
    pre_search_expanded: set[str] | None = None

    # Search
    search_query: str = ""
    search_matches: list[str] = Field(default_factory=list)
    active_match: int = -1
    search_filter_only: bool = False

    # Output and settings
    output_mode: OutputMode = "pretty"
    indent: int = 2
    auto_parse: bool = False
    auto_save: bool = True

    # History
    undo_stack: list[HistoryEntry] = Field(default_factory=list)
    redo_stack: list[HistoryEntry] = Field(default_factory=list)
    history_limit: int = 50

    # Snippets
    snippets: list[SnippetMeta] = Field(default_factory=list)
    snippet_contents: dict[str, str] = Field(default_factory=dict)

    notice: Notice | None = None

    @property
    def anchor_root(self) -> str | None:
        if self.anchor_path:
            return self.anchor_path[-1]
        return self.doc.root_id if self.doc else None

    @property
    def active_match_id(self) -> str | None:
        if 0 <= self.active_match < len(self.search_matches):
            return self.search_matches[self.active_match]
        return None


class SessionBundle(BaseModel):
    """Persistable subset of editor state."""

    version: str = "1.0"
    raw_text: str
    last_valid_text: str
    doc: Document | None = None
    expanded: list[str] = Field(default_factory=list)
    selected_id: str | None = None
    anchor_path: list[str] = Field(default_factory=list)
    indent: int = 2
    output_mode: OutputMode = "pretty"
    search_filter_only: bool = False
