import json
from pathlib import Path

from tsdocref.index import build_declaration_index

SAMPLES_DIR = Path(__file__).parent / "samples"


def test_index_contains_every_node_with_id():
    tree = {
        "id": 0,
        "name": "root",
        "children": [
            {"id": 1, "name": "a", "children": [{"id": 3, "name": "c"}]},
            {"name": "no-id", "children": [{"id": 4, "name": "d"}]},
            {"id": 2, "name": "b"},
        ],
    }

    index = build_declaration_index(tree)

    assert set(index) == {0, 1, 2, 3, 4}
    assert index[0] is tree
    assert index[3]["name"] == "c"
    # nodes without an id are walked through but not recorded
    assert index[4]["name"] == "d"


def test_index_follows_children_only():
    tree = {
        "id": 1,
        "kindString": "Constructor",
        "signatures": [{"id": 2, "parameters": [{"id": 3}]}],
    }

    assert set(build_declaration_index(tree)) == {1}


def test_duplicate_ids_last_write_wins():
    first = {"id": 7, "name": "first"}
    second = {"id": 7, "name": "second"}
    tree = {"children": [first, {"children": [second]}]}

    index = build_declaration_index(tree)

    assert list(index) == [7]
    assert index[7] is second


def test_index_extends_existing_mapping():
    existing = {99: {"id": 99}}
    out = build_declaration_index({"id": 1}, existing)
    assert out is existing
    assert set(out) == {1, 99}


def test_index_on_sample_module():
    spec = json.loads((SAMPLES_DIR / "combined.json").read_text())
    storage = spec["children"][0]

    index = build_declaration_index(storage)

    assert set(index) == {1, 2, 3, 15, 30, 34, 35}
    assert index[30]["kindString"] == "Interface"
