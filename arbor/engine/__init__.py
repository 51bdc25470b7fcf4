"""
Engine Module - Editor State Machine

Responsible for:
1. The command set and the single reduce(state, command) entry point
2. Bounded undo/redo of full snapshots
3. Search with active-match tracking and ancestor expansion
4. Anchor (focused subtree) navigation
5. Session bundles for persistence by callers
"""

from arbor.engine.anchor import (
    anchor_to,
    breadcrumbs,
    build_anchor_path,
    collapse_all,
    expand_all,
    json_pointer,
    resolve_anchor_path,
    resolve_pointer,
)
from arbor.engine.commands import Command, parse_command
from arbor.engine.editor import Editor, initial_state, reduce, render_output
from arbor.engine.search import (
    expand_ancestors,
    find_matches,
    visible_node_ids,
)
from arbor.engine.session import export_session, restore_session

__all__ = [
    # Editor
    "Editor",
    "reduce",
    "initial_state",
    "render_output",
    # Commands
    "Command",
    "parse_command",
    # Search
    "find_matches",
    "expand_ancestors",
    "visible_node_ids",
    # Anchor
    "anchor_to",
    "build_anchor_path",
    "resolve_anchor_path",
    "expand_all",
    "collapse_all",
    "breadcrumbs",
    "json_pointer",
    "resolve_pointer",
    # Sessions
    "export_session",
    "restore_session",
]
