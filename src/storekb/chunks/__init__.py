"""Chunk records and text helpers."""

from .payloads import CHUNK_FIELDS, CHUNK_TYPES, ChunkRecord, ScanRequest, SourceKind
from .text import sanitize_content, strip_tags, truncate_content

__all__ = [
    "CHUNK_FIELDS",
    "CHUNK_TYPES",
    "ChunkRecord",
    "ScanRequest",
    "SourceKind",
    "sanitize_content",
    "strip_tags",
    "truncate_content",
]
