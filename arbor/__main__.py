"""
Arbor CLI - Command Line Interface

Usage:
    python -m arbor format data.json --indent 4
    python -m arbor minify data.json
    python -m arbor search data.json "ada"
    python -m arbor apply data.json edits.jsonl -o out.json
    python -m arbor snippets list
    python -m arbor snippets save data.json --name "Fixture"

Command scripts for `apply` hold one JSON command per line. Node fields
(node_id, parent_id, child_id) may be JSON pointers such as "/users/0",
resolved against the document as it stands when that line runs.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from arbor.config import EditorConfig, load_config
from arbor.engine import Editor, find_matches, initial_state, json_pointer, parse_command
from arbor.engine.anchor import resolve_pointer
from arbor.engine.commands import DeleteSnippet, SaveSnippet
from arbor.exceptions import ArborError, DocumentParseError, NodeNotFoundError
from arbor.models import Document
from arbor.storage import SessionStore, SQLiteKVStore
from arbor.tree import build_document, format_json, minify_json, parse_json

logger = structlog.get_logger(__name__)

POINTER_FIELDS = ("node_id", "parent_id", "child_id")


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _read_json(path_arg: str) -> Any:
    path = Path(path_arg)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        return parse_json(path.read_text(encoding="utf-8"))
    except DocumentParseError as e:
        print(f"Error: {path}: {e}", file=sys.stderr)
        sys.exit(1)


def _open_store(args) -> tuple[SessionStore, EditorConfig]:
    config = load_config()
    db_path = args.db or config.resolved_store_path
    try:
        return SessionStore(SQLiteKVStore(db_path)), config
    except ArborError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def resolve_pointer_fields(doc: Document | None, data: dict[str, Any]) -> dict[str, Any]:
    """Replace JSON-pointer node fields in a command row with node ids."""
    if doc is None:
        return data
    resolved = dict(data)
    for field in POINTER_FIELDS:
        value = resolved.get(field)
        if isinstance(value, str) and (value == "" or value.startswith("/")):
            resolved[field] = resolve_pointer(doc, value)
    return resolved


# =============================================================================
# Commands
# =============================================================================


def cmd_format(args):
    """Pretty-print a JSON file."""
    value = _read_json(args.file)
    print(format_json(value, args.indent))


def cmd_minify(args):
    """Print a JSON file without whitespace."""
    value = _read_json(args.file)
    print(minify_json(value))


def cmd_search(args):
    """Print JSON pointers of every key or value matching the query."""
    doc = build_document(_read_json(args.file))
    matches = find_matches(doc, args.query)

    seen: set[str] = set()
    for node_id in matches:
        if node_id in seen:
            continue
        seen.add(node_id)
        print(json_pointer(doc, node_id))

    if not seen:
        sys.exit(1)


def cmd_apply(args):
    """Apply a JSON-lines command script to a document."""
    value = _read_json(args.file)
    script = Path(args.script)
    if not script.exists():
        print(f"Error: File not found: {script}", file=sys.stderr)
        sys.exit(1)

    config = load_config()
    editor = Editor(initial_state(config, value))
    failures = 0

    lines = script.read_text(encoding="utf-8").splitlines()
    for lineno, line in enumerate(lines, start=1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        try:
            row = parse_json(line)
            if not isinstance(row, dict):
                raise DocumentParseError("Each script line must be a JSON object")
            data = resolve_pointer_fields(editor.state.doc, row)
            command = parse_command(data)
        except (DocumentParseError, NodeNotFoundError, PydanticValidationError) as e:
            print(f"Error: {script}:{lineno}: {e}", file=sys.stderr)
            sys.exit(1)

        state = editor.dispatch(command)
        if state.notice is not None and state.notice.severity == "error":
            failures += 1
            print(f"{script}:{lineno}: {state.notice.message}", file=sys.stderr)

    logger.info("script_applied", script=str(script), failures=failures)

    if args.minify:
        output = minify_json(editor.value)
    else:
        output = format_json(editor.value, editor.state.indent)

    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        print(f"Result saved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    if failures and args.strict:
        sys.exit(1)


def cmd_snippets(args):
    """List, save, show or delete stored snippets."""
    store, config = _open_store(args)
    snippets, contents = store.load_snippets()

    if args.action == "list":
        if not snippets:
            print("No snippets saved.")
        for snippet in snippets:
            print(f"{snippet.id}  {snippet.updated_at}  {snippet.name}")
        return

    if args.action == "save":
        if not args.target:
            print("Error: snippets save needs a FILE", file=sys.stderr)
            sys.exit(1)
        value = _read_json(args.target)
        state = initial_state(config, value).model_copy(
            update={"snippets": snippets, "snippet_contents": contents}
        )
        editor = Editor(state)
        editor.dispatch(SaveSnippet(name=args.name or ""))
        store.save_snippets(editor.state.snippets, editor.state.snippet_contents)
        print(f"Saved snippet {editor.state.snippets[0].id} ({editor.state.snippets[0].name})")
        return

    if not args.target:
        print(f"Error: snippets {args.action} needs a snippet ID", file=sys.stderr)
        sys.exit(1)

    if args.target not in contents:
        print(f"Error: Snippet not found: {args.target}", file=sys.stderr)
        sys.exit(1)

    if args.action == "show":
        print(contents[args.target])
    elif args.action == "delete":
        editor = Editor(
            initial_state(config).model_copy(
                update={"snippets": snippets, "snippet_contents": contents}
            )
        )
        editor.dispatch(DeleteSnippet(snippet_id=args.target))
        store.save_snippets(editor.state.snippets, editor.state.snippet_contents)
        print(f"Deleted snippet {args.target}")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Arbor - Editable JSON Document Engine"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Format command
    format_parser = subparsers.add_parser("format", help="Pretty-print a JSON file")
    format_parser.add_argument("file", help="Path to JSON file")
    format_parser.add_argument("--indent", type=int, default=2, help="Indent width (default: 2)")

    # Minify command
    minify_parser = subparsers.add_parser("minify", help="Minify a JSON file")
    minify_parser.add_argument("file", help="Path to JSON file")

    # Search command
    search_parser = subparsers.add_parser("search", help="Find matching keys and values")
    search_parser.add_argument("file", help="Path to JSON file")
    search_parser.add_argument("query", help="Case-insensitive substring")

    # Apply command
    apply_parser = subparsers.add_parser("apply", help="Apply a command script")
    apply_parser.add_argument("file", help="Path to JSON file")
    apply_parser.add_argument("script", help="JSON-lines command script")
    apply_parser.add_argument("-o", "--output", help="Write the result to this file")
    apply_parser.add_argument("--minify", action="store_true", help="Minified output")
    apply_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero if any command was rejected",
    )

    # Snippets command
    snippets_parser = subparsers.add_parser("snippets", help="Manage saved snippets")
    snippets_parser.add_argument("action", choices=["list", "save", "show", "delete"])
    snippets_parser.add_argument("target", nargs="?", help="JSON file (save) or snippet ID")
    snippets_parser.add_argument("--name", help="Snippet name (save)")
    snippets_parser.add_argument("--db", help="SQLite database path")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "format":
        cmd_format(args)
    elif args.command == "minify":
        cmd_minify(args)
    elif args.command == "search":
        cmd_search(args)
    elif args.command == "apply":
        cmd_apply(args)
    elif args.command == "snippets":
        cmd_snippets(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
