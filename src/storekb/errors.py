"""Exception types raised by the knowledge base pipeline."""

from __future__ import annotations

from typing import Optional, Union


class StoreKBError(RuntimeError):
    """Base class for pipeline errors."""


class InvalidArgument(StoreKBError, ValueError):
    """Raised when configuration or request input is rejected."""


class SourceUnavailable(StoreKBError):
    """Raised when a whole source kind cannot be enumerated."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class ItemMappingError(StoreKBError):
    """Raised when one raw item cannot be turned into a chunk.

    Adapters raise it; the scanner absorbs it and skips the item.
    """

    def __init__(self, message: str, item_id: Optional[Union[int, str]] = None) -> None:
        super().__init__(message)
        self.item_id = item_id
