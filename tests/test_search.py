"""Tests for search, active match tracking and filter mode."""

import pytest

from arbor.config import EditorConfig
from arbor.engine import Editor, find_matches, initial_state, visible_node_ids
from arbor.engine.commands import (
    AnchorTo,
    DeleteNode,
    EditPrimitive,
    MoveMatch,
    SetSearchQuery,
    ToggleExpanded,
    ToggleFilterMode,
)
from arbor.engine.search import expand_ancestors, stringify_scalar
from arbor.tree.builder import build_document, build_parent_map


@pytest.fixture
def tru_editor():
    value = {"x": True, "y": {"z": "true story"}}
    return Editor(initial_state(EditorConfig(auto_save=False), value))


class TestFindMatches:
    """Tests for the match finder."""

    def test_boolean_and_string_leaves(self, path_to):
        doc = build_document({"x": True, "y": {"z": "true story"}})

        matches = find_matches(doc, "tru")

        assert matches == [path_to(doc, "x"), path_to(doc, "y", "z")]

    def test_key_match_records_child(self, nested_value, path_to):
        doc = build_document(nested_value)

        matches = find_matches(doc, "ADDRESS")

        assert matches == [path_to(doc, "user", "address")]

    def test_document_order(self, nested_value, path_to):
        doc = build_document(nested_value)

        matches = find_matches(doc, "name")

        assert matches == [
            path_to(doc, "user", "name"),
            path_to(doc, "items", 0, "name"),
            path_to(doc, "items", 1, "name"),
        ]

    def test_key_and_value_both_match(self, path_to):
        doc = build_document({"tag": "tagged"})
        tag_id = path_to(doc, "tag")

        assert find_matches(doc, "tag") == [tag_id, tag_id]

    def test_numbers_and_null(self, path_to):
        doc = build_document({"n": 2.5, "z": None})

        assert find_matches(doc, "2.5") == [path_to(doc, "n")]
        assert find_matches(doc, "nul") == [path_to(doc, "z")]

    def test_blank_query(self, sample_doc):
        assert find_matches(sample_doc, "   ") == []

    def test_scoped_to_subtree(self, nested_value, path_to):
        doc = build_document(nested_value)

        matches = find_matches(doc, "name", path_to(doc, "items"))

        assert len(matches) == 2

    def test_stringify(self, sample_doc, path_to):
        assert stringify_scalar(sample_doc.nodes[path_to(sample_doc, "a")]) == "1"
        assert stringify_scalar(sample_doc.nodes[path_to(sample_doc, "b", 0)]) == "true"


class TestExpandAncestors:
    """Tests for ancestor expansion."""

    def test_full_chain(self, nested_value, path_to):
        doc = build_document(nested_value)
        city = path_to(doc, "user", "address", "city")

        expanded = expand_ancestors(city, build_parent_map(doc), set())

        assert expanded == {
            doc.root_id,
            path_to(doc, "user"),
            path_to(doc, "user", "address"),
            city,
        }


class TestSearchState:
    """Tests for search through the editor."""

    def test_first_match_active(self, tru_editor, path_to):
        state = tru_editor.dispatch(SetSearchQuery(query="tru"))
        doc = state.doc

        assert state.active_match == 0
        assert state.active_match_id == path_to(doc, "x")
        assert doc.root_id in state.expanded

    def test_ancestors_expanded_when_match_active(self, tru_editor, path_to):
        tru_editor.dispatch(SetSearchQuery(query="tru"))
        state = tru_editor.dispatch(MoveMatch(direction=1))
        doc = state.doc

        assert state.active_match_id == path_to(doc, "y", "z")
        assert path_to(doc, "y") in state.expanded
        assert state.selected_id == path_to(doc, "y", "z")

    def test_every_match_ancestors_expanded(self, nested_editor):
        nested_editor.dispatch(SetSearchQuery(query="name"))
        parents = build_parent_map(nested_editor.state.doc)

        for _ in nested_editor.state.search_matches:
            state = nested_editor.dispatch(MoveMatch(direction=1))
            chain = expand_ancestors(state.active_match_id, parents, set())
            assert chain <= state.expanded

    def test_move_match_wraps(self, tru_editor):
        tru_editor.dispatch(SetSearchQuery(query="tru"))

        assert tru_editor.dispatch(MoveMatch(direction=-1)).active_match == 1
        assert tru_editor.dispatch(MoveMatch(direction=1)).active_match == 0

    def test_no_matches(self, tru_editor):
        state = tru_editor.dispatch(SetSearchQuery(query="nothing here"))

        assert state.search_matches == []
        assert state.active_match == -1
        assert tru_editor.dispatch(MoveMatch()).active_match == -1

    def test_active_match_survives_edit(self, tru_editor, path_to):
        tru_editor.dispatch(SetSearchQuery(query="tru"))
        tru_editor.dispatch(MoveMatch())
        z_id = path_to(tru_editor.state.doc, "y", "z")

        state = tru_editor.dispatch(EditPrimitive(node_id=z_id, value="truly edited"))

        assert state.active_match_id == z_id

    def test_active_match_snaps_to_first_when_removed(self, tru_editor, path_to):
        tru_editor.dispatch(SetSearchQuery(query="tru"))
        tru_editor.dispatch(MoveMatch())
        doc = tru_editor.state.doc

        state = tru_editor.dispatch(DeleteNode(parent_id=doc.root_id, child_id=path_to(doc, "y")))

        assert state.search_matches == [path_to(doc, "x")]
        assert state.active_match == 0

    def test_search_scoped_to_anchor(self, nested_editor, path_to):
        doc = nested_editor.state.doc
        nested_editor.dispatch(AnchorTo(node_id=path_to(doc, "items")))

        state = nested_editor.dispatch(SetSearchQuery(query="name"))

        assert state.search_matches == [
            path_to(doc, "items", 0, "name"),
            path_to(doc, "items", 1, "name"),
        ]

    def test_clearing_query_restores_expansion(self, nested_editor, path_to):
        doc = nested_editor.state.doc
        nested_editor.dispatch(ToggleExpanded(node_id=path_to(doc, "count")))
        before = set(nested_editor.state.expanded)

        nested_editor.dispatch(SetSearchQuery(query="london"))
        assert path_to(doc, "user", "address") in nested_editor.state.expanded

        state = nested_editor.dispatch(SetSearchQuery(query=""))

        assert state.expanded == before
        assert state.pre_search_expanded is None
        assert state.search_matches == []


class TestFilterMode:
    """Tests for the filter-mode visible set."""

    def test_off_by_default(self, nested_editor):
        nested_editor.dispatch(SetSearchQuery(query="london"))
        assert visible_node_ids(nested_editor.state) is None

    def test_visible_set(self, nested_editor, path_to):
        nested_editor.dispatch(SetSearchQuery(query="london"))
        state = nested_editor.dispatch(ToggleFilterMode(enabled=True))
        doc = state.doc

        assert visible_node_ids(state) == {
            doc.root_id,
            path_to(doc, "user"),
            path_to(doc, "user", "address"),
            path_to(doc, "user", "address", "city"),
        }

    def test_blank_query_shows_everything(self, nested_editor):
        state = nested_editor.dispatch(ToggleFilterMode(enabled=True))
        assert visible_node_ids(state) is None
