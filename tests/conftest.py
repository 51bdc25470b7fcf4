"""Pytest configuration and shared fixtures."""

import pytest

from arbor.config import EditorConfig
from arbor.engine import Editor, initial_state
from arbor.tree import build_document


def lookup(doc, parent_id, step):
    """Child id under parent_id by object key or array index."""
    parent = doc.require(parent_id)
    if parent.type == "object":
        return next(e.child_id for e in parent.entries if e.key == step)
    return parent.items[step]


def walk(doc, *steps):
    """Node id reached from the root by a sequence of keys / indexes."""
    node_id = doc.root_id
    for step in steps:
        node_id = lookup(doc, node_id, step)
    return node_id


@pytest.fixture
def sample_value():
    """Small nested value used across the engine tests."""
    return {"a": 1, "b": [True, None]}


@pytest.fixture
def nested_value():
    """Deeper value with mixed containers for search and anchor tests."""
    return {
        "user": {
            "name": "Ada Lovelace",
            "tags": ["math", "poetry"],
            "address": {"city": "London", "zip": "W1"},
        },
        "count": 3,
        "items": [{"name": "first", "done": False}, {"name": "second", "done": True}],
    }


@pytest.fixture
def sample_doc(sample_value):
    return build_document(sample_value)


@pytest.fixture
def config():
    """Config with persistence off so tests never touch the home directory."""
    return EditorConfig(auto_save=False, store_path=":memory:")


@pytest.fixture
def editor(sample_value, config):
    """Editor holding sample_value with empty history."""
    return Editor(initial_state(config, sample_value))


@pytest.fixture
def nested_editor(nested_value, config):
    return Editor(initial_state(config, nested_value))


@pytest.fixture
def path_to():
    """Resolve a key/index path to a node id: path_to(doc, "b", 0)."""
    return walk
