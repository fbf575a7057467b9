from __future__ import annotations

from pyturbidity.ingestion.decoder import RecordKind
from pyturbidity.ingestion.history import project, project_tree
from pyturbidity.ingestion.normalize import recency_key


def _reading(value: float, timestamp: str) -> dict[str, object]:
    return {"turbidity": value, "timestamp": timestamp, "unit": "NTU", "device_id": "ESP32"}


def test_projection_is_newest_first() -> None:
    tree = {
        "1700000000000": _reading(1.0, "1700000000000"),
        "1700000300000": _reading(3.0, "1700000300000"),
        "1700000100000": _reading(2.0, "1700000100000"),
    }

    records = project_tree(tree, RecordKind.MEASUREMENT, value_key="turbidity")

    assert [record.value for record in records] == [3.0, 2.0, 1.0]


def test_unparsable_timestamps_sort_last_in_store_order() -> None:
    children = [
        ("a", _reading(1.0, "abc")),
        ("b", _reading(2.0, "5")),
        ("c", _reading(3.0, "1e3")),
        ("d", _reading(4.0, "")),
    ]

    records = project(children, RecordKind.MEASUREMENT)

    assert [record.value for record in records] == [2.0, 1.0, 3.0, 4.0]


def test_equal_keys_keep_store_order() -> None:
    children = [(str(index), _reading(float(index), "100")) for index in range(5)]
    records = project(children, RecordKind.MEASUREMENT)
    assert [record.value for record in records] == [0.0, 1.0, 2.0, 3.0, 4.0]


def test_history_entries_order_by_millis() -> None:
    tree = {
        "-NaaA": {"value": 1, "timestamp": 10, "source": "x"},
        "-NaaB": {"value": 2, "timestamp": 30},
        "-NaaC": {"value": 3, "timestamp": 20},
        "-NaaD": {"value": 4},
    }

    records = project_tree(tree, RecordKind.HISTORY_ENTRY)

    assert [record.value for record in records] == [2, 3, 1, 4]
    assert records[0].source == "Unknown"


def test_array_shaped_collection() -> None:
    records = project_tree([None, _reading(1.0, "1"), _reading(2.0, "2")], RecordKind.MEASUREMENT)
    assert [record.value for record in records] == [2.0, 1.0]


def test_empty_collection() -> None:
    assert project_tree(None, RecordKind.MEASUREMENT) == []
    assert project_tree({}, RecordKind.MEASUREMENT) == []


def test_recency_key_rules() -> None:
    assert recency_key("1700000000000") == 1700000000000
    assert recency_key("+42") == 42
    assert recency_key("-7") == -7
    assert recency_key(" 42") == 0
    assert recency_key("4.2") == 0
    assert recency_key("99999999999999999999") == 0
    assert recency_key(12) == 12
    assert recency_key(True) == 0
    assert recency_key(None) == 0
