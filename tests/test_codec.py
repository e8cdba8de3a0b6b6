"""
Unit tests for takeoff_bridge.xdata.codec.

Tests:
- Canonical serialization
- Chunk count and chunk sizes
- Empty records
- Ceiling enforcement
- Decode errors
"""

import math

import pytest

from takeoff_bridge.errors import ChunkCeilingExceeded, CorruptPayload, EmptyPayload
from takeoff_bridge.xdata.codec import (
    DEFAULT_CHUNK_CEILING,
    DEFAULT_CHUNK_SIZE,
    ChunkCodec,
    join,
    serialize,
)


class TestSerialize:
    """Tests for canonical JSON text."""

    def test_compact_separators(self):
        """No whitespace between tokens."""
        assert serialize({"parts": [{"id": "A1", "len": 30.0}]}) == \
            '{"parts":[{"id":"A1","len":30.0}]}'

    def test_key_order_preserved(self):
        """Keys keep insertion order."""
        assert serialize({"b": 1, "a": 2}) == '{"b":1,"a":2}'

    def test_non_ascii_escaped(self):
        """Non-ASCII text is escaped so chunks stay ASCII."""
        assert serialize(["Ø"]) == '["\\u00d8"]'


class TestChunkCodecInit:
    """Tests for codec parameters."""

    def test_defaults(self):
        """Defaults fit a DXF string group."""
        codec = ChunkCodec()
        assert codec.chunk_size == DEFAULT_CHUNK_SIZE == 250
        assert codec.ceiling == DEFAULT_CHUNK_CEILING == 20

    @pytest.mark.parametrize("size, ceiling", [(0, 20), (10, 0), (-1, 5)])
    def test_invalid_parameters(self, size, ceiling):
        """Sizes and ceilings below one are rejected."""
        with pytest.raises(ValueError):
            ChunkCodec(chunk_size=size, ceiling=ceiling)


class TestEncode:
    """Tests for splitting records into chunks."""

    @pytest.mark.parametrize("size", [1, 3, 7, 10, 1000])
    def test_chunk_count(self, size):
        """ceil(len / size) chunks, all but the last exactly `size` long."""
        record = {"parts": [{"id": "A1", "len": 30.0}, {"id": "B2", "len": 12.5}]}
        text = serialize(record)
        payload = ChunkCodec(chunk_size=size, ceiling=1000).encode(record)

        assert payload.chunk_count == math.ceil(len(text) / size)
        assert all(len(c) == size for c in payload.chunks[:-1])
        assert 0 < len(payload.chunks[-1]) <= size
        assert ''.join(payload.chunks) == text

    def test_single_chunk_scenario(self):
        """A short record fits one chunk of size 1000."""
        payload = ChunkCodec(chunk_size=1000).encode({"parts": [{"id": "A1", "len": 30.0}]})
        assert payload.chunk_count == 1
        assert payload.chunks == ['{"parts":[{"id":"A1","len":30.0}]}']

    @pytest.mark.parametrize("record", [None, [], {}])
    def test_empty_record_has_no_chunks(self, record):
        """Empty or absent records encode to zero chunks."""
        payload = ChunkCodec().encode(record)
        assert payload.chunk_count == 0
        assert payload.chunks == []

    def test_falsy_scalars_are_records(self):
        """0 and empty strings are values, not absence."""
        assert ChunkCodec().encode(0).chunks == ["0"]
        assert ChunkCodec().encode("").chunks == ['""']

    def test_ceiling_exceeded(self):
        """Too many chunks is an error, never truncation."""
        codec = ChunkCodec(chunk_size=5, ceiling=3)
        with pytest.raises(ChunkCeilingExceeded) as exc_info:
            codec.encode("x" * 20)
        assert exc_info.value.required == 5
        assert exc_info.value.ceiling == 3

    def test_exactly_at_ceiling(self):
        """A record needing exactly `ceiling` chunks is accepted."""
        codec = ChunkCodec(chunk_size=4, ceiling=3)
        payload = codec.encode("abcdefghij")  # '"abcdefghij"' is 12 chars
        assert payload.chunk_count == 3

    def test_encode_text_validates_json(self):
        """Pre-serialized text must parse."""
        with pytest.raises(CorruptPayload):
            ChunkCodec().encode_text("{not json")

    def test_encode_text_keeps_text(self):
        """Whitespace in pre-serialized text is kept verbatim."""
        payload = ChunkCodec(chunk_size=4).encode_text('[1, 2]')
        assert ''.join(payload.chunks) == '[1, 2]'


class TestDecode:
    """Tests for joining and parsing chunks."""

    @pytest.mark.parametrize("size", [1, 2, 5, 250])
    def test_round_trip(self, size):
        """decode(encode(R)) == R for non-empty records."""
        record = [{"Name": "Face Cap", "Len": 30.25, "Tags": ["a", "b"], "Shop": False}]
        codec = ChunkCodec(chunk_size=size, ceiling=1000)
        assert codec.decode(codec.encode(record).chunks) == record

    def test_empty_chunks_raise_empty_payload(self):
        """Zero chunks is the absent record."""
        with pytest.raises(EmptyPayload):
            ChunkCodec().decode([])

    def test_join_empty(self):
        with pytest.raises(EmptyPayload):
            join([])

    def test_truncated_payload_is_corrupt(self):
        """Missing the last chunk breaks the JSON."""
        codec = ChunkCodec(chunk_size=5)
        chunks = codec.encode({"a": [1, 2, 3]}).chunks
        with pytest.raises(CorruptPayload):
            codec.decode(chunks[:-1])

    def test_out_of_order_chunks_are_corrupt(self):
        codec = ChunkCodec(chunk_size=4)
        chunks = codec.encode({"key": "value"}).chunks
        with pytest.raises(CorruptPayload):
            codec.decode(list(reversed(chunks)))
