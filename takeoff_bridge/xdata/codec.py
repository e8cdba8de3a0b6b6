"""
Chunk codec for records that outgrow one slot.

A record is serialized to compact JSON and split into contiguous pieces of
at most `chunk_size` characters. Concatenating the pieces in index order
reproduces the serialized text exactly.

Empty or absent records (None, [], {}) encode to zero chunks; decoding zero
chunks raises EmptyPayload, which stores report as "record absent".

Usage:
    codec = ChunkCodec(chunk_size=250, ceiling=20)
    payload = codec.encode([{"id": "A1", "len": 30.0}])
    record = codec.decode(payload.chunks)
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from takeoff_bridge.errors import ChunkCeilingExceeded, CorruptPayload, EmptyPayload

DEFAULT_CHUNK_SIZE = 250
DEFAULT_CHUNK_CEILING = 20


def serialize(record: Any) -> str:
    """Canonical JSON text: insertion key order, no whitespace, ASCII only."""
    return json.dumps(record, separators=(',', ':'), ensure_ascii=True)


def is_empty_record(record: Any) -> bool:
    return record is None or (isinstance(record, (list, dict)) and not record)


@dataclass
class EncodedPayload:
    """Serialized text and its chunks."""
    text: str
    chunks: List[str] = field(default_factory=list)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


class ChunkCodec:
    """Splits serialized records into bounded chunks and joins them back."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        ceiling: int = DEFAULT_CHUNK_CEILING,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if ceiling < 1:
            raise ValueError(f"ceiling must be >= 1, got {ceiling}")
        self.chunk_size = chunk_size
        self.ceiling = ceiling

    def __repr__(self) -> str:
        return f"ChunkCodec(chunk_size={self.chunk_size}, ceiling={self.ceiling})"

    def chunk_count(self, text: str) -> int:
        return math.ceil(len(text) / self.chunk_size)

    def split(self, text: str) -> List[str]:
        """Split serialized text into chunks, enforcing the ceiling.

        Raises:
            ChunkCeilingExceeded: if more than `ceiling` chunks are needed
        """
        required = self.chunk_count(text)
        if required > self.ceiling:
            raise ChunkCeilingExceeded(required, self.ceiling)
        size = self.chunk_size
        return [text[i:i + size] for i in range(0, len(text), size)]

    def encode(self, record: Any) -> EncodedPayload:
        if is_empty_record(record):
            return EncodedPayload(text="")
        text = serialize(record)
        return EncodedPayload(text=text, chunks=self.split(text))

    def encode_text(self, text: str) -> EncodedPayload:
        """Chunk text that is already serialized; it must be valid JSON."""
        if not text:
            return EncodedPayload(text="")
        parse(text)
        return EncodedPayload(text=text, chunks=self.split(text))

    def decode(self, chunks: Sequence[str]) -> Any:
        """Join chunks in index order and parse.

        Raises:
            EmptyPayload: if there are no chunks
            CorruptPayload: if the joined text is not valid JSON
        """
        return parse(join(chunks))


def join(chunks: Sequence[str]) -> str:
    if not chunks:
        raise EmptyPayload("Chunk set is empty")
    return ''.join(chunks)


def parse(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise CorruptPayload(f"Payload is not valid JSON: {exc}") from exc
