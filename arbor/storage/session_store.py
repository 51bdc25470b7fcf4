"""
Session Store - Persist the Editor Between Runs

Keys:
    arbor:last-doc          SessionBundle JSON for the most recent session
    arbor:snippets          JSON list of SnippetMeta, newest first
    arbor:snippets:<id>     raw text of one snippet
    arbor:settings          {"auto_save": bool}

Loading is best effort: anything unreadable is logged and treated as
absent so a corrupt store never blocks the editor from starting.
"""

from __future__ import annotations

import json
from dataclasses import replace

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from arbor.config import EditorConfig
from arbor.engine.session import export_session, restore_session
from arbor.exceptions import StorageError
from arbor.models import EditorState, SessionBundle, SnippetMeta
from arbor.storage.kv_store import KVStore

logger = structlog.get_logger(__name__)

LAST_DOC_KEY = "arbor:last-doc"
SNIPPETS_KEY = "arbor:snippets"
SETTINGS_KEY = "arbor:settings"

_snippet_list = TypeAdapter(list[SnippetMeta])


def snippet_key(snippet_id: str) -> str:
    return f"{SNIPPETS_KEY}:{snippet_id}"


class SessionStore:
    """
    Saves and restores editor sessions and snippets through a KV store.

    Example:
        store = SessionStore(SQLiteKVStore(config.resolved_store_path))
        state = store.load(config) or initial_state(config)
        ...
        store.save(state)
    """

    def __init__(self, kv: KVStore):
        self.kv = kv

    # =========================================================================
    # Save
    # =========================================================================

    def save(self, state: EditorState) -> None:
        """
        Write the session, the snippet index and snippet contents.

        With auto_save off the last document is removed instead of written,
        while snippets and settings are still kept.
        """
        self.kv.put(SETTINGS_KEY, json.dumps({"auto_save": state.auto_save}))

        if state.auto_save:
            bundle = export_session(state)
            self.kv.put(LAST_DOC_KEY, bundle.model_dump_json())
        else:
            self.kv.delete(LAST_DOC_KEY)

        self.save_snippets(state.snippets, state.snippet_contents)

        logger.info(
            "session_saved",
            auto_save=state.auto_save,
            snippets=len(state.snippets),
        )

    def save_snippets(self, snippets: list[SnippetMeta], contents: dict[str, str]) -> None:
        """Replace the stored snippet index and contents, dropping stale entries."""
        live = {snippet.id for snippet in snippets}

        for key in self.kv.keys(f"{SNIPPETS_KEY}:"):
            if key[len(SNIPPETS_KEY) + 1:] not in live:
                self.kv.delete(key)

        for snippet in snippets:
            text = contents.get(snippet.id)
            if text is not None:
                self.kv.put(snippet_key(snippet.id), text)

        self.kv.put(SNIPPETS_KEY, _snippet_list.dump_json(snippets).decode())

    # =========================================================================
    # Load
    # =========================================================================

    def load_settings(self) -> dict:
        raw = self.kv.get(SETTINGS_KEY)
        if raw is None:
            return {}
        try:
            settings = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("settings_unreadable", error=str(e))
            return {}
        if not isinstance(settings, dict):
            logger.error("settings_unreadable", error="not an object")
            return {}
        return settings

    def load_snippets(self) -> tuple[list[SnippetMeta], dict[str, str]]:
        """
        Read the snippet index and every snippet's text.

        Index entries whose content is missing are dropped.
        """
        raw = self.kv.get(SNIPPETS_KEY)
        if raw is None:
            return [], {}

        try:
            snippets = _snippet_list.validate_json(raw)
        except PydanticValidationError as e:
            logger.error("snippet_index_unreadable", error=str(e))
            return [], {}

        kept: list[SnippetMeta] = []
        contents: dict[str, str] = {}
        for snippet in snippets:
            text = self.kv.get(snippet_key(snippet.id))
            if text is None:
                logger.warning("snippet_content_missing", snippet_id=snippet.id)
                continue
            kept.append(snippet)
            contents[snippet.id] = text

        return kept, contents

    def load(self, config: EditorConfig | None = None) -> EditorState | None:
        """
        Restore the last session.

        Returns:
            The restored EditorState, or None when there is no saved session
            or it cannot be read.
        """
        config = config or EditorConfig()

        settings = self.load_settings()
        if isinstance(settings.get("auto_save"), bool):
            config = replace(config, auto_save=settings["auto_save"])

        raw = self.kv.get(LAST_DOC_KEY)
        if raw is None:
            logger.debug("no_saved_session")
            return None

        snippets, contents = self.load_snippets()

        try:
            bundle = SessionBundle.model_validate_json(raw)
            return restore_session(bundle, config, snippets, contents)
        except (PydanticValidationError, StorageError) as e:
            logger.error("session_unreadable", error=str(e))
            return None

    def clear(self) -> int:
        """Remove every arbor key. Returns the number removed."""
        keys = self.kv.keys("arbor:")
        for key in keys:
            self.kv.delete(key)
        logger.info("session_store_cleared", count=len(keys))
        return len(keys)
