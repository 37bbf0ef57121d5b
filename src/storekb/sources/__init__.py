"""Per-kind content source adapters."""

from typing import Dict, Optional

from storekb.chunks.payloads import SourceKind
from storekb.chunks.text import DEFAULT_MAX_CONTENT_LENGTH
from storekb.language import LanguageResolver
from storekb.repository.base import ContentRepository

from .base import SourceAdapter
from .content import PageAdapter, PostAdapter
from .products import ProductAdapter
from .store_settings import SettingsAdapter
from .taxonomy import TaxonomyAdapter

ADAPTER_TYPES = {
    SourceKind.PRODUCT: ProductAdapter,
    SourceKind.PAGE: PageAdapter,
    SourceKind.POST: PostAdapter,
    SourceKind.SETTING: SettingsAdapter,
    SourceKind.CATEGORY: TaxonomyAdapter,
}


def build_adapters(
    repository: ContentRepository,
    language_resolver: LanguageResolver,
    *,
    store_url: Optional[str] = None,
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
) -> Dict[SourceKind, SourceAdapter]:
    """One adapter per source kind sharing the same collaborators."""
    return {
        kind: adapter_type(
            repository,
            language_resolver,
            store_url=store_url,
            max_content_length=max_content_length,
        )
        for kind, adapter_type in ADAPTER_TYPES.items()
    }


__all__ = [
    "ADAPTER_TYPES",
    "PageAdapter",
    "PostAdapter",
    "ProductAdapter",
    "SettingsAdapter",
    "SourceAdapter",
    "TaxonomyAdapter",
    "build_adapters",
]
