"""Tests for undo/redo history."""

from arbor.config import EditorConfig
from arbor.engine import Editor, initial_state
from arbor.engine.commands import AddNode, DeleteNode, EditPrimitive, Redo, SetSelected, Undo
from arbor.engine.history import push, snapshot
from arbor.models import StringNode


class TestHistoryPrimitives:
    """Tests for snapshot and push."""

    def test_snapshot_is_independent(self, editor):
        state = editor.state
        entry = snapshot(state)

        state.doc.nodes[state.doc.root_id].entries.clear()

        assert entry.doc.root.keys == ["a", "b"]

    def test_snapshot_captures_view(self, editor):
        entry = snapshot(editor.state)

        assert entry.raw_text == editor.state.raw_text
        assert entry.expanded == [editor.state.doc.root_id]
        assert entry.selected_id == editor.state.selected_id

    def test_push_newest_first(self, editor):
        first = snapshot(editor.state)
        second = first.model_copy(update={"raw_text": "second"})

        stack = push(push([], first), second)

        assert stack[0].raw_text == "second"

    def test_push_trims_oldest(self, editor):
        entry = snapshot(editor.state)
        stack = []
        for index in range(5):
            stack = push(stack, entry.model_copy(update={"raw_text": str(index)}), limit=3)

        assert [e.raw_text for e in stack] == ["4", "3", "2"]

    def test_push_zero_limit(self, editor):
        assert push([], snapshot(editor.state), limit=0) == []


class TestUndoRedo:
    """Tests for undo/redo through the editor."""

    def _edit_a(self, editor, value):
        a_id = editor.state.doc.root.entries[0].child_id
        editor.dispatch(EditPrimitive(node_id=a_id, value=value))

    def test_three_edits_two_undos_one_redo(self, editor):
        self._edit_a(editor, 2)
        self._edit_a(editor, 3)
        after_two = editor.state
        self._edit_a(editor, 4)

        editor.dispatch(Undo())
        editor.dispatch(Undo())
        editor.dispatch(Redo())

        assert editor.value == {"a": 3, "b": [True, None]}
        assert editor.state.raw_text == after_two.raw_text
        assert editor.state.doc.model_dump() == after_two.doc.model_dump()

    def test_undo_is_inverse(self, editor, sample_value):
        editor.dispatch(
            AddNode(parent_id=editor.state.doc.root_id, parent_kind="object", new_type="array", key="c")
        )
        edited = editor.value

        editor.dispatch(Undo())
        assert editor.value == sample_value

        editor.dispatch(Redo())
        assert editor.value == edited

    def test_undo_restores_deleted_ids(self, editor):
        root_id = editor.state.doc.root_id
        b_id = editor.state.doc.root.entries[1].child_id

        editor.dispatch(DeleteNode(parent_id=root_id, child_id=b_id))
        assert not editor.state.doc.contains(b_id)

        editor.dispatch(Undo())
        assert editor.state.doc.contains(b_id)

    def test_undo_restores_selection(self, editor):
        a_id = editor.state.doc.root.entries[0].child_id
        editor.dispatch(SetSelected(node_id=editor.state.doc.root_id))
        before = editor.state.selected_id

        self._edit_a(editor, 7)
        assert editor.state.selected_id == a_id

        editor.dispatch(Undo())
        assert editor.state.selected_id == before

    def test_new_edit_clears_redo(self, editor):
        self._edit_a(editor, 2)
        editor.dispatch(Undo())
        assert editor.can_redo

        self._edit_a(editor, 5)
        assert not editor.can_redo

    def test_empty_stacks_give_info_notice(self, editor):
        state = editor.dispatch(Undo())
        assert state.notice.severity == "info"
        assert state.notice.message == "Nothing to undo."

        state = editor.dispatch(Redo())
        assert state.notice.message == "Nothing to redo."

    def test_history_capacity(self, sample_value):
        editor = Editor(initial_state(EditorConfig(history_limit=3, auto_save=False), sample_value))
        a_id = editor.state.doc.root.entries[0].child_id
        for value in range(10, 15):
            editor.dispatch(EditPrimitive(node_id=a_id, value=value))

        assert len(editor.state.undo_stack) == 3

        for _ in range(3):
            editor.dispatch(Undo())
        assert editor.value["a"] == 11
        assert not editor.can_undo

    def test_rejected_edit_records_nothing(self, editor):
        a_id = editor.state.doc.root.entries[0].child_id
        editor.dispatch(EditPrimitive(node_id=a_id, value="oops", new_type="number"))

        assert not editor.can_undo
        assert editor.value["a"] == 1

    def test_history_entries_not_shared_with_state(self, editor):
        self._edit_a(editor, 2)
        entry_doc = editor.state.undo_stack[0].doc
        a_id = editor.state.doc.root.entries[0].child_id

        editor.state.doc.nodes[a_id] = StringNode(id=a_id, value="mutated")

        assert entry_doc.nodes[a_id].value == 1
