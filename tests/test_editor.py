"""Tests for the editor reducer."""

import pytest

from arbor.config import EditorConfig
from arbor.engine import Editor, initial_state, parse_command, reduce, render_output
from arbor.engine.commands import (
    AddNode,
    DeleteNode,
    DeleteSnippet,
    EditPrimitive,
    LoadSnippet,
    LoadText,
    MoveArrayItem,
    OverwriteSnippet,
    ParseText,
    RenameKey,
    RenameSnippet,
    ResetEditor,
    SaveSnippet,
    SetAutoParse,
    SetIndent,
    SetNotice,
    SetOutputMode,
    SetRawText,
    SetSearchQuery,
    SetSelected,
    SortKeys,
    ToggleExpanded,
    Undo,
)
from arbor.engine.editor import SAMPLE_DOCUMENT
from arbor.models import Notice


class TestInitialState:
    """Tests for editor construction."""

    def test_sample_document(self):
        editor = Editor(config=EditorConfig(auto_save=False))

        assert editor.value == SAMPLE_DOCUMENT
        assert not editor.can_undo
        assert editor.state.expanded == {editor.state.doc.root_id}
        assert editor.state.anchor_path == [editor.state.doc.root_id]

    def test_explicit_null_value(self, config):
        state = initial_state(config, None)

        assert state.doc.root.type == "null"

    def test_config_applied(self):
        config = EditorConfig(indent=4, output_mode="minified", history_limit=7)
        state = initial_state(config, {"a": 1})

        assert state.raw_text == '{\n    "a": 1\n}'
        assert state.output_mode == "minified"
        assert state.history_limit == 7


class TestParsing:
    """Tests for loading and parsing text."""

    def test_load_text(self, editor):
        state = editor.dispatch(LoadText(text='{"k": [1,2]}'))

        assert editor.value == {"k": [1, 2]}
        assert state.raw_text == '{\n  "k": [\n    1,\n    2\n  ]\n}'
        assert state.last_valid_text == state.raw_text
        assert state.notice == Notice(severity="success", message="JSON parsed.")
        assert state.selected_id == state.doc.root_id
        assert editor.can_undo

    def test_parse_error_keeps_document(self, editor, sample_value):
        before = editor.state

        state = editor.dispatch(LoadText(text='{"a": }'))

        assert editor.value == sample_value
        assert state.doc is before.doc
        assert state.last_valid_text == before.last_valid_text
        assert state.parse_error.line == 1
        assert state.parse_error.column == 7
        assert state.notice.severity == "error"
        assert not editor.can_undo

    def test_draft_then_parse(self, editor):
        state = editor.dispatch(SetRawText(text="[1, 2"))
        assert state.raw_text == "[1, 2"
        assert state.parse_error is None

        state = editor.dispatch(ParseText())
        assert state.parse_error is not None

        editor.dispatch(SetRawText(text="[1, 2]"))
        state = editor.dispatch(ParseText())
        assert editor.value == [1, 2]
        assert state.parse_error is None

    def test_auto_parse(self, editor):
        editor.dispatch(SetAutoParse(enabled=True))

        state = editor.dispatch(SetRawText(text='{"x": true}'))
        assert editor.value == {"x": True}

        state = editor.dispatch(SetRawText(text='{"x": tru'))
        assert state.raw_text == '{"x": tru'
        assert state.parse_error is not None
        assert editor.value == {"x": True}

    def test_overflowing_number_keeps_document(self, editor, sample_value):
        before = editor.state

        state = editor.dispatch(LoadText(text='{"big": 1e400}'))

        assert editor.value == sample_value
        assert state.doc is before.doc
        assert state.parse_error.message.startswith("Number out of range")
        assert state.notice.severity == "error"
        assert not editor.can_undo

    def test_auto_parse_overflowing_number(self, editor, sample_value):
        editor.dispatch(SetAutoParse(enabled=True))

        state = editor.dispatch(SetRawText(text="-1e999"))

        assert state.raw_text == "-1e999"
        assert state.parse_error is not None
        assert editor.value == sample_value

    def test_undo_parse(self, editor, sample_value):
        editor.dispatch(LoadText(text="[]"))
        editor.dispatch(Undo())

        assert editor.value == sample_value


class TestMutations:
    """Tests for structural commands through reduce()."""

    def test_add_then_duplicate(self, editor):
        root_id = editor.state.doc.root_id
        editor.dispatch(AddNode(parent_id=root_id, parent_kind="object", new_type="string", key="c"))
        after_first = editor.value

        state = editor.dispatch(
            AddNode(parent_id=root_id, parent_kind="object", new_type="string", key="c")
        )

        assert editor.value == after_first
        assert state.notice == Notice(severity="error", message="Duplicate key inside this object.")

    def test_add_selects_and_reformats(self, editor):
        root_id = editor.state.doc.root_id

        state = editor.dispatch(
            AddNode(parent_id=root_id, parent_kind="object", new_type="boolean", key="flag")
        )

        assert state.doc.nodes[state.selected_id].type == "boolean"
        assert '"flag": false' in state.raw_text

    def test_select_unknown_node_is_ignored(self, editor, path_to):
        a_id = path_to(editor.state.doc, "a")
        editor.dispatch(SetSelected(node_id=a_id))

        state = editor.dispatch(SetSelected(node_id="missing"))

        assert state.selected_id == a_id

    def test_toggle_unknown_node_is_ignored(self, editor):
        before = set(editor.state.expanded)

        state = editor.dispatch(ToggleExpanded(node_id="missing"))

        assert state.expanded == before
        assert "missing" not in state.expanded

    def test_toggle_expanded(self, editor, path_to):
        b_id = path_to(editor.state.doc, "b")

        assert b_id in editor.dispatch(ToggleExpanded(node_id=b_id)).expanded
        assert b_id not in editor.dispatch(ToggleExpanded(node_id=b_id)).expanded

    def test_delete_moves_selection_to_parent(self, editor, path_to):
        doc = editor.state.doc
        b_id = path_to(doc, "b")
        editor.dispatch(ToggleExpanded(node_id=b_id))
        editor.dispatch(SetSelected(node_id=path_to(doc, "b", 1)))

        state = editor.dispatch(DeleteNode(parent_id=doc.root_id, child_id=b_id))

        assert editor.value == {"a": 1}
        assert state.selected_id == doc.root_id
        assert b_id not in state.expanded

    def test_rejected_number_edit(self, editor, path_to):
        a_id = path_to(editor.state.doc, "a")

        state = editor.dispatch(EditPrimitive(node_id=a_id, value="1x", new_type="number"))

        assert editor.value["a"] == 1
        assert state.notice.message == "Numbers must be valid JSON numbers."

    def test_rename_key(self, editor, path_to):
        doc = editor.state.doc

        editor.dispatch(RenameKey(parent_id=doc.root_id, child_id=path_to(doc, "a"), new_key="z"))

        assert editor.value == {"z": 1, "b": [True, None]}

    def test_boundary_move_is_silent(self, editor, path_to):
        doc = editor.state.doc
        before = editor.state

        state = editor.dispatch(
            MoveArrayItem(parent_id=path_to(doc, "b"), child_id=path_to(doc, "b", 0), direction=-1)
        )

        assert state.notice is None
        assert state.doc is before.doc
        assert not editor.can_undo

    def test_unknown_node_is_rejected(self, editor):
        state = editor.dispatch(EditPrimitive(node_id="missing", value=1))

        assert state.notice.severity == "error"

    def test_sort_all(self, config):
        editor = Editor(initial_state(config, {"b": 1, "a": {"d": 1, "c": 2}}))

        editor.dispatch(SortKeys())

        assert editor.output == '{\n  "a": {\n    "c": 2,\n    "d": 1\n  },\n  "b": 1\n}'

    def test_sort_selected(self, config, path_to):
        editor = Editor(initial_state(config, {"b": {"y": 1, "x": 2}, "a": 1}))
        inner = path_to(editor.state.doc, "b")
        editor.dispatch(SetSelected(node_id=inner))

        state = editor.dispatch(SortKeys(scope="selected"))

        assert list(editor.value) == ["b", "a"]
        assert list(editor.value["b"]) == ["x", "y"]
        assert state.selected_id == inner

    def test_sort_selected_without_selection(self, editor):
        editor.dispatch(SetSelected(node_id=None))

        state = editor.dispatch(SortKeys(scope="selected"))

        assert state.notice == Notice(severity="info", message="Select a node to sort.")

    def test_no_document(self):
        state = reduce(
            initial_state(EditorConfig(auto_save=False)).model_copy(update={"doc": None}),
            DeleteNode(parent_id="a", child_id="b"),
        )

        assert state.notice.message == "Load or parse JSON first."

    def test_previous_state_untouched(self, editor, sample_value):
        before = editor.state

        reduce(before, AddNode(parent_id=before.doc.root_id, parent_kind="object", new_type="null", key="n"))

        assert editor.value == sample_value
        assert before.undo_stack == []


class TestOutputAndSettings:
    """Tests for output mode, indent and notices."""

    def test_minified_output(self, editor):
        editor.dispatch(SetOutputMode(mode="minified"))

        assert editor.output == '{"a":1,"b":[true,null]}'

    def test_indent(self, editor):
        state = editor.dispatch(SetIndent(indent=4))

        assert state.raw_text.startswith('{\n    "a"')
        assert render_output(state) == state.raw_text
        assert not editor.can_undo

    def test_indent_bounds(self):
        with pytest.raises(ValueError):
            SetIndent(indent=-1)

    def test_notice_cleared_by_next_command(self, editor):
        editor.dispatch(Undo())
        assert editor.state.notice is not None

        state = editor.dispatch(SetSelected(node_id=None))
        assert state.notice is None

    def test_set_notice(self, editor):
        notice = Notice(severity="info", message="hello")

        assert editor.dispatch(SetNotice(notice=notice)).notice == notice

    def test_reset(self, editor):
        editor.dispatch(LoadText(text="[1]"))

        state = editor.dispatch(ResetEditor())

        assert editor.value == SAMPLE_DOCUMENT
        assert state.undo_stack == []
        assert state.auto_save is False


class TestSnippets:
    """Tests for snippet commands."""

    def test_save_and_load(self, editor, sample_value):
        state = editor.dispatch(SaveSnippet(name="  Base "))
        snippet = state.snippets[0]

        assert snippet.name == "Base"
        assert state.notice.message == "Snippet saved locally."

        editor.dispatch(LoadText(text='{"other": true}'))
        editor.dispatch(LoadSnippet(snippet_id=snippet.id))

        assert editor.value == sample_value

    def test_default_name_and_order(self, editor):
        editor.dispatch(SaveSnippet())
        state = editor.dispatch(SaveSnippet(name="second"))

        assert [s.name for s in state.snippets] == ["second", "Untitled snippet"]

    def test_load_missing(self, editor):
        state = editor.dispatch(LoadSnippet(snippet_id="nope"))

        assert state.notice == Notice(severity="info", message="Snippet not found.")

    def test_rename_and_delete(self, editor):
        snippet = editor.dispatch(SaveSnippet(name="one")).snippets[0]

        state = editor.dispatch(RenameSnippet(snippet_id=snippet.id, name="uno"))
        assert state.snippets[0].name == "uno"

        state = editor.dispatch(DeleteSnippet(snippet_id=snippet.id))
        assert state.snippets == []
        assert snippet.id not in state.snippet_contents

    def test_overwrite(self, editor):
        snippet = editor.dispatch(SaveSnippet(name="one")).snippets[0]
        editor.dispatch(LoadText(text="[42]"))

        state = editor.dispatch(OverwriteSnippet(snippet_id=snippet.id))

        assert state.snippet_contents[snippet.id] == editor.state.raw_text
        assert state.notice.message == "Snippet updated."


class TestParseCommand:
    """Tests for decoding commands from plain dicts."""

    def test_decodes_variant(self):
        command = parse_command({"type": "rename_key", "parent_id": "p", "child_id": "c", "new_key": "k"})

        assert isinstance(command, RenameKey)

    def test_search_query(self):
        assert isinstance(parse_command({"type": "set_search_query", "query": "x"}), SetSearchQuery)

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            parse_command({"type": "explode"})

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            parse_command({"type": "move_array_item", "parent_id": "p", "child_id": "c", "direction": 3})
