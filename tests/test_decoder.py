"""Tests for snapshot decoding with TurbidityBaseModel kind matching."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pyturbidity.config import SchemaVariant
from pyturbidity.ingestion.decoder import RecordKind, decode, decode_children, decode_current
from pyturbidity.models import Alert, DeviceStatus, HistoryEntry, Measurement

# ------------------------------------------------------------------
# Measurement
# ------------------------------------------------------------------


class TestMeasurement:
    def test_full_document(self) -> None:
        raw = {"turbidity": 12.5, "timestamp": "1700000000000", "unit": "NTU", "device_id": "ESP32_01"}
        record = decode(raw, RecordKind.MEASUREMENT, value_key="turbidity")

        assert isinstance(record, Measurement)
        assert record.value == 12.5
        assert record.timestamp == "1700000000000"
        assert record.unit == "NTU"
        assert record.source_id == "ESP32_01"
        assert record.raw == raw
        assert record.recorded_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_integer_value_widens_to_float(self) -> None:
        record = decode({"turbidity": 12}, RecordKind.MEASUREMENT)
        assert record.value == 12.0
        assert isinstance(record.value, float)

    def test_wrong_kinds_fall_back_to_defaults(self) -> None:
        raw = {"turbidity": "12.5", "timestamp": 1700000000000, "unit": 5, "device_id": None}
        record = decode(raw, RecordKind.MEASUREMENT, value_key="turbidity")

        assert (record.value, record.timestamp, record.unit, record.source_id) == (0.0, "", "NTU", "")
        assert record.raw == raw

    def test_bool_is_not_a_number(self) -> None:
        assert decode({"turbidity": True}, RecordKind.MEASUREMENT).value == 0.0

    def test_value_key_selects_metric(self) -> None:
        record = decode({"ph": 7.2, "turbidity": 500.0}, RecordKind.MEASUREMENT, value_key="ph")
        assert record.value == 7.2

    def test_generic_value_key_is_accepted(self) -> None:
        record = decode({"value": 3.5}, RecordKind.MEASUREMENT, value_key="turbidity")
        assert record.value == 3.5

    def test_first_present_key_decides(self) -> None:
        record = decode({"turbidity": "bad", "value": 3.5}, RecordKind.MEASUREMENT, value_key="turbidity")
        assert record.value == 0.0

    def test_document_with_own_raw_key_is_kept_whole(self) -> None:
        raw = {"turbidity": 5.0, "raw": {"x": 1}}
        record = decode(raw, RecordKind.MEASUREMENT, value_key="turbidity")

        assert record.value == 5.0
        assert record.raw == raw

    def test_unparsable_timestamp(self) -> None:
        record = decode({"turbidity": 1.0, "timestamp": "yesterday"}, RecordKind.MEASUREMENT)
        assert record.recency_key == 0
        assert record.recorded_at is None


@pytest.mark.parametrize("raw", [None, 42, "text", [1, 2], 1.5])
def test_non_mapping_decodes_to_defaults(raw: object) -> None:
    for kind in RecordKind:
        record = decode(raw, kind)
        assert record.raw == {}
        assert record == type(record)()


# ------------------------------------------------------------------
# DeviceStatus / Alert / HistoryEntry
# ------------------------------------------------------------------


class TestDeviceStatus:
    def test_remote_keys(self) -> None:
        record = decode({"status": "online", "wifi_rssi": -60, "free_heap": 123456}, RecordKind.DEVICE_STATUS)

        assert isinstance(record, DeviceStatus)
        assert record.state == "online"
        assert record.signal_strength == -60
        assert record.free_memory_bytes == 123456
        assert record.free_memory_kib == 120

    def test_whole_float_accepted_for_int(self) -> None:
        assert decode({"wifi_rssi": -60.0}, RecordKind.DEVICE_STATUS).signal_strength == -60

    def test_fractional_float_rejected_for_int(self) -> None:
        assert decode({"wifi_rssi": -60.5}, RecordKind.DEVICE_STATUS).signal_strength == 0

    def test_int32_range_enforced(self) -> None:
        record = decode({"wifi_rssi": 2**31, "free_heap": 2**40}, RecordKind.DEVICE_STATUS)
        assert record.signal_strength == 0
        assert record.free_memory_bytes == 2**40

    def test_missing_fields(self) -> None:
        record = decode({"status": "booting"}, RecordKind.DEVICE_STATUS)
        assert record.state == "booting"
        assert record.signal_strength == 0
        assert record.free_memory_bytes == 0


class TestAlert:
    def test_type_maps_to_kind(self) -> None:
        raw = {"type": "high_turbidity", "value": 1500, "message": "High turbidity detected"}
        record = decode(raw, RecordKind.ALERT)

        assert isinstance(record, Alert)
        assert record.kind == "high_turbidity"
        assert record.value == 1500.0
        assert record.is_valid

    def test_missing_kind_is_invalid(self) -> None:
        assert not decode({"value": 3.0}, RecordKind.ALERT).is_valid


class TestHistoryEntry:
    def test_full_document(self) -> None:
        record = decode({"value": 42, "timestamp": 1700000000000, "source": "Android_App"}, RecordKind.HISTORY_ENTRY)

        assert isinstance(record, HistoryEntry)
        assert record.value == 42
        assert record.timestamp_millis == 1700000000000
        assert record.source == "Android_App"
        assert record.recency_key == 1700000000000

    def test_defaults(self) -> None:
        record = decode({"value": 2**31, "timestamp": "1700000000000"}, RecordKind.HISTORY_ENTRY)
        assert record.value == 0
        assert record.timestamp_millis == 0
        assert record.source == "Unknown"
        assert record.recorded_at is None


# ------------------------------------------------------------------
# Current value and collections
# ------------------------------------------------------------------


class TestDecodeCurrent:
    def test_measurement_layout(self) -> None:
        record = decode_current({"turbidity": 8.25}, SchemaVariant.MEASUREMENT, value_key="turbidity")
        assert record.value == 8.25

    def test_history_entry_layout_reads_bare_integer(self) -> None:
        record = decode_current(42, SchemaVariant.HISTORY_ENTRY)
        assert record.value == 42.0
        assert record.unit == ""

    @pytest.mark.parametrize("raw", [None, "42", 4.5, {"value": 42}])
    def test_history_entry_layout_rejects_non_integers(self, raw: object) -> None:
        assert decode_current(raw, SchemaVariant.HISTORY_ENTRY).value == 0.0

    def test_absent_document(self) -> None:
        assert decode_current(None, SchemaVariant.MEASUREMENT).value == 0.0


def test_decode_children_skips_array_holes() -> None:
    records = decode_children([None, {"type": "a"}, None, {"type": "b"}], RecordKind.ALERT)
    assert [record.kind for record in records] == ["a", "b"]


def test_decode_children_of_scalar_is_empty() -> None:
    assert decode_children(5, RecordKind.ALERT) == []
    assert decode_children(None, RecordKind.ALERT) == []
