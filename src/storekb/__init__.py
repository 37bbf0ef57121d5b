"""Knowledge base content pipeline for a WooCommerce AI assistant."""

from storekb.chunks import ChunkRecord, ScanRequest, SourceKind
from storekb.errors import InvalidArgument, ItemMappingError, SourceUnavailable, StoreKBError
from storekb.report import ScanError, ScanReport
from storekb.scanner import Scanner, build_scanner

__version__ = "0.1.0"

__all__ = [
    "ChunkRecord",
    "InvalidArgument",
    "ItemMappingError",
    "ScanError",
    "ScanReport",
    "ScanRequest",
    "Scanner",
    "SourceKind",
    "SourceUnavailable",
    "StoreKBError",
    "build_scanner",
]
