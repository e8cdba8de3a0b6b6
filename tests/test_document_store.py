"""
Unit tests for takeoff_bridge.xdata.document_store.
"""

import pytest

from takeoff_bridge.errors import CorruptPayload
from takeoff_bridge.host.dxf_store import DxfRecordStore
from takeoff_bridge.host.record_store import DOCUMENT, REAL, TEXT
from takeoff_bridge.xdata.document_store import (
    DocumentAttributeStore,
    copy_document_record,
    key_namespace,
)


class TestKeyNamespace:

    def test_top_level_dictionary(self):
        assert key_namespace("WORKPOINTS/PRIMARY") == "WORKPOINTS"
        assert key_namespace("ELEVATIONDEFINITIONS") == "ELEVATIONDEFINITIONS"


class TestPointRecords:
    """Tests for 3-D point records."""

    def test_round_trip(self, any_store):
        store = DocumentAttributeStore(any_store)
        store.write_point("WORKPOINTS/PRIMARY", (1.5, -2.0, 3.25))
        assert store.read_point("WORKPOINTS/PRIMARY") == (1.5, -2.0, 3.25)

    def test_stored_as_three_reals(self, memory_store):
        store = DocumentAttributeStore(memory_store)
        store.write_point("WORKPOINTS/PRIMARY", (1, 2, 3))
        values = memory_store.get_slot(DOCUMENT, "WORKPOINTS/PRIMARY")
        assert [v.code for v in values] == [REAL, REAL, REAL]
        assert [v.value for v in values] == [1.0, 2.0, 3.0]

    def test_registers_top_namespace(self, any_store):
        store = DocumentAttributeStore(any_store)
        store.write_point("WORKPOINTS/PRIMARY", (0, 0, 0))
        assert any_store.namespace_exists("WORKPOINTS")

    def test_absent(self, any_store):
        """Never written: None."""
        assert DocumentAttributeStore(any_store).read_point("WORKPOINTS/PRIMARY") is None

    def test_overwrite(self, any_store):
        store = DocumentAttributeStore(any_store)
        store.write_point("WORKPOINTS/PRIMARY", (1, 1, 1))
        store.write_point("WORKPOINTS/PRIMARY", (2, 2, 2))
        assert store.read_point("WORKPOINTS/PRIMARY") == (2.0, 2.0, 2.0)

    def test_wrong_dimension(self, doc_store):
        with pytest.raises(ValueError):
            doc_store.write_point("WORKPOINTS/PRIMARY", (1, 2))

    def test_text_slot_is_not_a_point(self, doc_store, memory_store):
        doc_store.write("WORKPOINTS/PRIMARY", [(TEXT, "origin")])
        with pytest.raises(CorruptPayload):
            doc_store.read_point("WORKPOINTS/PRIMARY")


class TestJsonRecords:
    """Tests for JSON document records."""

    def test_round_trip(self, any_store):
        record = [{"ElevationCode": "E1", "Instances": [{"Floor": "2", "Quantity": 3}]}]
        store = DocumentAttributeStore(any_store)
        store.write_json("ELEVATIONDEFINITIONS", record)
        assert store.read_json("ELEVATIONDEFINITIONS") == record

    def test_single_text_value(self, doc_store, memory_store):
        doc_store.write_json("METALATTACHMENTS", [{"Side": "L"}])
        values = memory_store.get_slot(DOCUMENT, "METALATTACHMENTS")
        assert len(values) == 1
        assert values[0].code == TEXT
        assert values[0].value == '[{"Side":"L"}]'

    def test_empty_list_is_stored(self, doc_store):
        """An empty list is a record, unlike None."""
        doc_store.write_json("METALATTACHMENTS", [])
        assert doc_store.read_json("METALATTACHMENTS") == []

    def test_none_clears(self, doc_store):
        doc_store.write_json("METALATTACHMENTS", [1])
        doc_store.write_json("METALATTACHMENTS", None)
        assert doc_store.read_json("METALATTACHMENTS") is None

    def test_bad_json_is_corrupt(self, doc_store):
        doc_store.write("ELEVATIONDEFINITIONS", [(TEXT, "[{")])
        with pytest.raises(CorruptPayload):
            doc_store.read_json("ELEVATIONDEFINITIONS")

    def test_no_text_is_corrupt(self, doc_store):
        doc_store.write("ELEVATIONDEFINITIONS", [(REAL, 1.0)])
        with pytest.raises(CorruptPayload):
            doc_store.read_json("ELEVATIONDEFINITIONS")


class TestCopyDocumentRecord:
    """Tests for copying between drawings."""

    def test_copy(self):
        source = DocumentAttributeStore(DxfRecordStore.new())
        target = DocumentAttributeStore(DxfRecordStore.new())
        source.write_point("WORKPOINTS/PRIMARY", (4, 5, 6))

        assert copy_document_record(source, target, "WORKPOINTS/PRIMARY")
        assert target.read_point("WORKPOINTS/PRIMARY") == (4.0, 5.0, 6.0)
        assert target.store.namespace_exists("WORKPOINTS")

    def test_missing_source_leaves_target(self):
        source = DocumentAttributeStore(DxfRecordStore.new())
        target = DocumentAttributeStore(DxfRecordStore.new())
        target.write_point("WORKPOINTS/PRIMARY", (1, 1, 1))

        assert not copy_document_record(source, target, "WORKPOINTS/PRIMARY")
        assert target.read_point("WORKPOINTS/PRIMARY") == (1.0, 1.0, 1.0)
