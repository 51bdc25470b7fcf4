"""
Arbor - Editable JSON Document Engine

Holds a JSON document as a flat arena of identity-bearing nodes and edits it
through structural commands, with:
- Bounded undo/redo of full snapshots
- Key and value search with ancestor expansion and a filter mode
- An anchor that scopes navigation to one subtree
- Sessions and snippets persisted to a local SQLite store

Usage:
    from arbor import Editor, LoadText, SetSearchQuery, Undo

    editor = Editor()
    editor.dispatch(LoadText(text='{"user": {"name": "Ada"}}'))
    editor.dispatch(SetSearchQuery(query="ada"))
    print(editor.state.search_matches)
    print(editor.output)

Configuration:
    ARBOR_* environment variables (or a .env file); see arbor.config.
"""

__version__ = "0.1.0"

from arbor.config import EditorConfig, load_config
from arbor.engine import (
    Editor,
    anchor_to,
    export_session,
    find_matches,
    initial_state,
    parse_command,
    reduce,
    render_output,
    restore_session,
)
from arbor.engine.commands import (
    AddNode,
    AnchorTo,
    DeleteNode,
    EditPrimitive,
    LoadText,
    MoveArrayItem,
    MoveMatch,
    Redo,
    RenameKey,
    SetSearchQuery,
    SortKeys,
    ToggleFilterMode,
    Undo,
)
from arbor.exceptions import (
    ArborError,
    DocumentParseError,
    StorageError,
    TreeIntegrityError,
    ValidationError,
)
from arbor.models import Document, EditorState, Notice
from arbor.storage import InMemoryKVStore, SessionStore, SQLiteKVStore
from arbor.tree import build_document, document_to_value, format_json, minify_json, parse_json

__all__ = [
    # Version
    "__version__",
    # Editor
    "Editor",
    "EditorState",
    "reduce",
    "initial_state",
    "render_output",
    "parse_command",
    # Commands
    "LoadText",
    "EditPrimitive",
    "RenameKey",
    "AddNode",
    "DeleteNode",
    "MoveArrayItem",
    "SortKeys",
    "Undo",
    "Redo",
    "SetSearchQuery",
    "MoveMatch",
    "ToggleFilterMode",
    "AnchorTo",
    # Navigation
    "find_matches",
    "anchor_to",
    # Documents
    "Document",
    "Notice",
    "build_document",
    "document_to_value",
    "parse_json",
    "format_json",
    "minify_json",
    # Persistence
    "SQLiteKVStore",
    "InMemoryKVStore",
    "SessionStore",
    "export_session",
    "restore_session",
    # Config
    "EditorConfig",
    "load_config",
    # Exceptions
    "ArborError",
    "DocumentParseError",
    "ValidationError",
    "TreeIntegrityError",
    "StorageError",
]
