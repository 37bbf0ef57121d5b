"""Access to the host store's content."""

from .base import SETTINGS_GROUPS, ContentRepository, RawItem
from .rest import WooCommerceRestRepository
from .snapshot import SnapshotRepository

__all__ = [
    "SETTINGS_GROUPS",
    "ContentRepository",
    "RawItem",
    "SnapshotRepository",
    "WooCommerceRestRepository",
]
