"""
Editor Commands

Every command the reducer understands is a pydantic model tagged by a
`type` literal. `Command` is the closed discriminated union, so scripts can
be decoded straight from JSON:

    parse_command({"type": "rename_key", "parent_id": "...", "child_id": "...", "new_key": "b"})
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from arbor.models import ContainerType, NodeType, Notice, OutputMode

# =============================================================================
# Text / Load
# =============================================================================


class SetRawText(BaseModel):
    type: Literal["set_raw_text"] = "set_raw_text"
    text: str


class ParseText(BaseModel):
    type: Literal["parse_text"] = "parse_text"


class LoadText(BaseModel):
    """Replace the whole document with the parsed text."""

    type: Literal["load_text"] = "load_text"
    text: str


# =============================================================================
# Structural Mutations
# =============================================================================


class EditPrimitive(BaseModel):
    type: Literal["edit_primitive"] = "edit_primitive"
    node_id: str
    value: Any = None
    new_type: NodeType | None = None


class RenameKey(BaseModel):
    type: Literal["rename_key"] = "rename_key"
    parent_id: str
    child_id: str
    new_key: str


class AddNode(BaseModel):
    type: Literal["add_node"] = "add_node"
    parent_id: str
    parent_kind: ContainerType
    new_type: NodeType
    key: str | None = None


class DeleteNode(BaseModel):
    type: Literal["delete_node"] = "delete_node"
    parent_id: str
    child_id: str


class MoveArrayItem(BaseModel):
    type: Literal["move_array_item"] = "move_array_item"
    parent_id: str
    child_id: str
    direction: Literal[-1, 1]


class SortKeys(BaseModel):
    """Sort the selected subtree (or node_id if given) or the whole document."""

    type: Literal["sort_keys"] = "sort_keys"
    scope: Literal["selected", "all"] = "all"
    node_id: str | None = None


class Undo(BaseModel):
    type: Literal["undo"] = "undo"


class Redo(BaseModel):
    type: Literal["redo"] = "redo"


# =============================================================================
# View / Navigation
# =============================================================================


class SetSelected(BaseModel):
    type: Literal["set_selected"] = "set_selected"
    node_id: str | None = None


class ToggleExpanded(BaseModel):
    type: Literal["toggle_expanded"] = "toggle_expanded"
    node_id: str


class ExpandAll(BaseModel):
    type: Literal["expand_all"] = "expand_all"


class CollapseAll(BaseModel):
    type: Literal["collapse_all"] = "collapse_all"


class SetSearchQuery(BaseModel):
    type: Literal["set_search_query"] = "set_search_query"
    query: str


class MoveMatch(BaseModel):
    type: Literal["move_match"] = "move_match"
    direction: Literal[-1, 1] = 1


class ToggleFilterMode(BaseModel):
    type: Literal["toggle_filter_mode"] = "toggle_filter_mode"
    enabled: bool


class AnchorTo(BaseModel):
    """Focus the anchor on a node. None re-anchors at the document root."""

    type: Literal["anchor_to"] = "anchor_to"
    node_id: str | None = None


# =============================================================================
# Output / Settings
# =============================================================================


class SetOutputMode(BaseModel):
    type: Literal["set_output_mode"] = "set_output_mode"
    mode: OutputMode


class SetIndent(BaseModel):
    type: Literal["set_indent"] = "set_indent"
    indent: int = Field(ge=0, le=16)


class SetAutoParse(BaseModel):
    type: Literal["set_auto_parse"] = "set_auto_parse"
    enabled: bool


class SetAutoSave(BaseModel):
    type: Literal["set_auto_save"] = "set_auto_save"
    enabled: bool


class SetNotice(BaseModel):
    type: Literal["set_notice"] = "set_notice"
    notice: Notice | None = None


class ResetEditor(BaseModel):
    type: Literal["reset_editor"] = "reset_editor"


# =============================================================================
# Snippets
# =============================================================================


class SaveSnippet(BaseModel):
    type: Literal["save_snippet"] = "save_snippet"
    name: str = ""


class LoadSnippet(BaseModel):
    type: Literal["load_snippet"] = "load_snippet"
    snippet_id: str


class RenameSnippet(BaseModel):
    type: Literal["rename_snippet"] = "rename_snippet"
    snippet_id: str
    name: str


class DeleteSnippet(BaseModel):
    type: Literal["delete_snippet"] = "delete_snippet"
    snippet_id: str


class OverwriteSnippet(BaseModel):
    type: Literal["overwrite_snippet"] = "overwrite_snippet"
    snippet_id: str


Command = Annotated[
    Union[
        SetRawText,
        ParseText,
        LoadText,
        EditPrimitive,
        RenameKey,
        AddNode,
        DeleteNode,
        MoveArrayItem,
        SortKeys,
        Undo,
        Redo,
        SetSelected,
        ToggleExpanded,
        ExpandAll,
        CollapseAll,
        SetSearchQuery,
        MoveMatch,
        ToggleFilterMode,
        AnchorTo,
        SetOutputMode,
        SetIndent,
        SetAutoParse,
        SetAutoSave,
        SetNotice,
        ResetEditor,
        SaveSnippet,
        LoadSnippet,
        RenameSnippet,
        DeleteSnippet,
        OverwriteSnippet,
    ],
    Field(discriminator="type"),
]

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(data: dict[str, Any]) -> Command:
    """Decode one command from a plain dict (e.g. a JSON-lines script row)."""
    return _command_adapter.validate_python(data)
