from __future__ import annotations

from pyturbidity.store.tree import apply_patch, apply_put, key_order, normalize_tree, ordered_snapshot


def test_put_at_root_replaces_tree() -> None:
    assert apply_put({"a": 1}, "/", {"b": 2}) == {"b": 2}


def test_put_nested_creates_parents() -> None:
    tree = apply_put(None, "/1700000000000/turbidity", 12.5)
    assert tree == {"1700000000000": {"turbidity": 12.5}}


def test_put_null_deletes_and_prunes_empty_parents() -> None:
    tree = {"a": {"b": {"c": 1}}, "d": 2}
    assert apply_put(tree, "/a/b/c", None) == {"d": 2}


def test_deleting_last_child_empties_tree() -> None:
    assert apply_put({"a": 1}, "/a", None) is None


def test_put_null_on_missing_branch_is_noop() -> None:
    assert apply_put({"a": 1}, "/x/y", None) == {"a": 1}


def test_patch_merges_children() -> None:
    tree = apply_patch({"status": "online", "wifi_rssi": -70}, "/", {"wifi_rssi": -55, "free_heap": 1024})
    assert tree == {"status": "online", "wifi_rssi": -55, "free_heap": 1024}


def test_patch_can_delete_children() -> None:
    tree = apply_patch({"a": {"x": 1, "y": 2}}, "/a", {"x": None})
    assert tree == {"a": {"y": 2}}


def test_normalize_tree_drops_nulls_and_keys_lists_by_index() -> None:
    assert normalize_tree({"a": None, "b": {}, "c": [None, 5]}) == {"c": {"1": 5}}
    assert normalize_tree({}) is None


def test_key_order_puts_integers_first() -> None:
    keys = ["b", "10", "2", "a", "-1", "01", "2147483648"]
    assert sorted(keys, key=key_order) == ["-1", "2", "10", "01", "2147483648", "a", "b"]


def test_ordered_snapshot_is_a_copy() -> None:
    tree = {"b": {"y": 1, "x": 2}, "a": 3}
    snapshot = ordered_snapshot(tree)

    assert list(snapshot) == ["a", "b"]
    assert list(snapshot["b"]) == ["x", "y"]
    snapshot["b"]["x"] = 99
    assert tree["b"]["x"] == 2
