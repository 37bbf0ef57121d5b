"""Knowledge base scanner: cached, per-kind content scans and their aggregate."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Union

from storekb.cache import MISS, CacheStore, build_cache_store
from storekb.chunks.payloads import ChunkRecord, ScanRequest, SourceKind
from storekb.config import Settings, settings
from storekb.errors import InvalidArgument, ItemMappingError, SourceUnavailable, StoreKBError
from storekb.language import LanguageResolver
from storekb.report import ResultAggregator, ScanReport
from storekb.repository import ContentRepository, SnapshotRepository, WooCommerceRestRepository
from storekb.sources import SourceAdapter, build_adapters

logger = logging.getLogger(__name__)

SCAN_ORDER = (
    SourceKind.PRODUCT,
    SourceKind.PAGE,
    SourceKind.POST,
    SourceKind.SETTING,
    SourceKind.CATEGORY,
)

# scan_all flag -> source kind, with defaults
SCAN_ALL_FLAGS = {
    "include_products": (SourceKind.PRODUCT, True),
    "include_pages": (SourceKind.PAGE, True),
    "include_posts": (SourceKind.POST, False),
    "include_settings": (SourceKind.SETTING, True),
    "include_categories": (SourceKind.CATEGORY, True),
}

MAX_BATCH_OFFSET = 10000

# Malformed raw items surface as one of these while mapping.
_MALFORMED_ITEM_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class Scanner:
    """Orchestrates cached scans over the content source adapters.

    Collaborators are passed in explicitly; build a new instance to get a
    clean state. Batch size and TTL changes only affect later calls.
    """

    def __init__(
        self,
        cache: CacheStore,
        adapters: Mapping[SourceKind, SourceAdapter],
        language_resolver: LanguageResolver,
        *,
        batch_size: int = 100,
        cache_ttl: int = 3600,
        max_batch_size: int = 500,
        cache_prefix: str = "storekb:scanner",
    ) -> None:
        self.cache = cache
        self.adapters: Dict[SourceKind, SourceAdapter] = dict(adapters)
        self.language_resolver = language_resolver
        self.max_batch_size = max_batch_size
        self.cache_prefix = cache_prefix
        self._batch_size = 1
        self._cache_ttl = 0
        self._last_scan_stats: Dict[str, Dict[str, Any]] = {}
        self.set_batch_size(batch_size)
        self.set_cache_ttl(cache_ttl)

    # -- configuration -------------------------------------------------

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def cache_ttl(self) -> int:
        return self._cache_ttl

    def set_batch_size(self, size: int) -> None:
        if not _is_int(size) or size < 1:
            raise InvalidArgument(f"Batch size must be a positive integer, got {size!r}")
        if size > self.max_batch_size:
            logger.warning("Batch size %s exceeds maximum %s; clamping", size, self.max_batch_size)
            size = self.max_batch_size
        self._batch_size = size

    def set_cache_ttl(self, seconds: int) -> None:
        if not _is_int(seconds) or seconds < 0:
            raise InvalidArgument(f"Cache TTL must be a non-negative integer, got {seconds!r}")
        self._cache_ttl = seconds

    @property
    def supported_kinds(self) -> List[SourceKind]:
        return [kind for kind in SCAN_ORDER if kind in self.adapters]

    # -- single-source scans -------------------------------------------

    def scan(
        self,
        kind: Union[SourceKind, str],
        request: Optional[ScanRequest] = None,
        **options: Any,
    ) -> List[ChunkRecord]:
        """Scan one source kind, serving from cache unless ``force_refresh``.

        Raises ``InvalidArgument`` for a bad request and ``SourceUnavailable``
        when the kind cannot be enumerated; nothing is cached in that case.
        """
        kind = self._resolve_kind(kind)
        if request is None:
            request = ScanRequest.from_options(options)
        elif options:
            raise InvalidArgument("Pass either a ScanRequest or keyword options, not both")

        limit = self._effective_limit(request)
        started = time.perf_counter()

        if limit == 0:
            self._record_stats(kind, scanned=0, skipped=0, errors=0, started=started, cache_hit=False)
            return []

        key = self.cache_key(kind, request, limit)
        if not request.force_refresh:
            cached = self._read_cache(key)
            if cached is not None:
                logger.debug("Cache hit for %s scan (%s)", kind.value, key)
                self._record_stats(kind, scanned=len(cached), skipped=0, errors=0, started=started, cache_hit=True)
                return cached

        adapter = self.adapters[kind]
        logger.debug("Starting %s scan (limit=%s, offset=%s)", kind.value, limit, request.offset)
        try:
            items = adapter.enumerate(request, limit)
        except SourceUnavailable as exc:
            if exc.source is None:
                exc.source = kind.value
            logger.error("%s scanning failed: %s", kind.value.capitalize(), exc)
            raise

        chunks: List[ChunkRecord] = []
        skipped = 0
        errors = 0
        for item in items[:limit]:
            try:
                chunks.append(adapter.map_item(item, request))
            except ItemMappingError as exc:
                skipped += 1
                logger.warning("Skipping %s %s: %s", kind.value, _raw_id(item), exc)
            except _MALFORMED_ITEM_ERRORS as exc:
                errors += 1
                logger.warning("Error mapping %s %s: %s", kind.value, _raw_id(item), exc)

        self.cache.set(key, [chunk.to_dict() for chunk in chunks], self._cache_ttl)
        self._record_stats(kind, scanned=len(chunks), skipped=skipped, errors=errors, started=started, cache_hit=False)
        logger.info(
            "%s scan completed: %s chunk(s), %s skipped, %s error(s)",
            kind.value.capitalize(),
            len(chunks),
            skipped,
            errors,
        )
        return chunks

    def scan_products(self, request: Optional[ScanRequest] = None, **options: Any) -> List[ChunkRecord]:
        return self.scan(SourceKind.PRODUCT, request, **options)

    def scan_pages(self, request: Optional[ScanRequest] = None, **options: Any) -> List[ChunkRecord]:
        return self.scan(SourceKind.PAGE, request, **options)

    def scan_posts(self, request: Optional[ScanRequest] = None, **options: Any) -> List[ChunkRecord]:
        return self.scan(SourceKind.POST, request, **options)

    def scan_woocommerce_settings(self, request: Optional[ScanRequest] = None, **options: Any) -> List[ChunkRecord]:
        return self.scan(SourceKind.SETTING, request, **options)

    def scan_categories(self, request: Optional[ScanRequest] = None, **options: Any) -> List[ChunkRecord]:
        return self.scan(SourceKind.CATEGORY, request, **options)

    # -- aggregate -----------------------------------------------------

    def scan_all(self, options: Optional[Mapping[str, bool]] = None) -> ScanReport:
        """Scan every enabled kind in ``SCAN_ORDER``; failures become report errors."""
        enabled, force_refresh = _parse_scan_all_options(options)
        aggregator = ResultAggregator()

        for kind in SCAN_ORDER:
            if kind not in enabled or kind not in self.adapters:
                continue
            try:
                chunks = self.scan(kind, ScanRequest(force_refresh=force_refresh))
            except StoreKBError as exc:
                logger.error("Source %s failed during full scan: %s", kind.value, exc)
                aggregator.record_failure(kind, str(exc))
                continue
            except Exception as exc:
                logger.exception("Unexpected error scanning %s", kind.value)
                aggregator.record_failure(kind, f"{type(exc).__name__}: {exc}")
                continue
            aggregator.record_success(kind, chunks)

        report = aggregator.build()
        logger.info(
            "Full scan finished in %.2fs: %s chunk(s), %s error(s)",
            report.duration,
            report.total,
            len(report.errors),
        )
        return report

    def process_batch(
        self,
        kind: Union[SourceKind, str],
        offset: int = 0,
        limit: int = 100,
        *,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """One page of a kind, with pagination hints for the caller."""
        kind = self._resolve_kind(kind)
        offset = max(0, min(int(offset), MAX_BATCH_OFFSET))
        limit = max(1, min(int(limit), self.max_batch_size))

        data = self.scan(kind, ScanRequest(limit=limit, offset=offset, force_refresh=force_refresh))
        has_more = len(data) == limit and offset < MAX_BATCH_OFFSET
        return {
            "data": data,
            "pagination": {
                "offset": offset,
                "limit": limit,
                "current_batch_size": len(data),
                "has_more": has_more,
                "next_offset": min(offset + limit, MAX_BATCH_OFFSET) if has_more else None,
            },
            "stats": self.get_last_scan_stats(kind),
        }

    # -- cache ---------------------------------------------------------

    def cache_key(self, kind: SourceKind, request: ScanRequest, limit: int) -> str:
        payload = json.dumps(request.cache_payload(limit), sort_keys=True, default=str)
        digest = hashlib.md5(payload.encode("utf-8")).hexdigest()
        key = f"{self.cache_prefix}:{kind.value}:{digest}"
        return self.language_resolver.cache_key(key, request.language)

    def _read_cache(self, key: str) -> Optional[List[ChunkRecord]]:
        cached = self.cache.get(key)
        if cached is MISS:
            return None
        try:
            return [ChunkRecord.from_dict(entry) for entry in cached]
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Ignoring malformed cache entry %s: %s", key, exc)
            return None

    def clear_cache(self, key: Optional[str] = None) -> bool:
        if key:
            return self.cache.delete(key)
        flushed = self.cache.flush()
        logger.debug("Scanner cache flush %s", "succeeded" if flushed else "failed")
        return flushed

    # -- statistics ----------------------------------------------------

    def _record_stats(
        self,
        kind: SourceKind,
        *,
        scanned: int,
        skipped: int,
        errors: int,
        started: float,
        cache_hit: bool,
    ) -> None:
        self._last_scan_stats[kind.value] = {
            "scanned": scanned,
            "skipped": skipped,
            "errors": errors,
            "duration": time.perf_counter() - started,
            "cache_hit": cache_hit,
        }

    def get_last_scan_stats(self, kind: Union[SourceKind, str, None] = None) -> Dict[str, Any]:
        if kind is None:
            return {name: dict(stats) for name, stats in self._last_scan_stats.items()}
        return dict(self._last_scan_stats.get(self._resolve_kind(kind).value, {}))

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "batch_size": self._batch_size,
            "cache_ttl": self._cache_ttl,
            "max_batch_size": self.max_batch_size,
            "supported_kinds": [kind.value for kind in self.supported_kinds],
            "multilingual": self.language_resolver.is_multilingual_active(),
            "current_language": self.language_resolver.get_current_language(),
            "last_scan": self.get_last_scan_stats(),
        }

    # -- helpers -------------------------------------------------------

    def _resolve_kind(self, kind: Union[SourceKind, str]) -> SourceKind:
        try:
            resolved = SourceKind(kind)
        except ValueError as exc:
            raise InvalidArgument(f"Unsupported content type: {kind}") from exc
        if resolved not in self.adapters:
            raise InvalidArgument(f"No adapter configured for {resolved.value}")
        return resolved

    def _effective_limit(self, request: ScanRequest) -> int:
        if not _is_int(request.offset) or request.offset < 0:
            raise InvalidArgument(f"Offset must be a non-negative integer, got {request.offset!r}")
        if request.limit is None:
            return self._batch_size
        if not _is_int(request.limit) or request.limit < 0:
            raise InvalidArgument(f"Limit must be a non-negative integer, got {request.limit!r}")
        return min(request.limit, self.max_batch_size)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _raw_id(item: Any) -> Any:
    return item.get("id", item.get("group")) if isinstance(item, dict) else item


def _parse_scan_all_options(options: Optional[Mapping[str, bool]]):
    options = dict(options or {})
    force_refresh = bool(options.pop("force_refresh", False))
    unknown = sorted(set(options) - set(SCAN_ALL_FLAGS))
    if unknown:
        raise InvalidArgument(f"Unknown scan_all option(s): {', '.join(unknown)}")

    enabled = set()
    for flag, (kind, default) in SCAN_ALL_FLAGS.items():
        if bool(options.get(flag, default)):
            enabled.add(kind)
    return enabled, force_refresh


def build_scanner(
    repository: Optional[ContentRepository] = None,
    cache: Optional[CacheStore] = None,
    config: Optional[Settings] = None,
) -> Scanner:
    """Wire a scanner from settings, defaulting to the REST repository."""
    config = config or settings
    if repository is None:
        if config.snapshot_path:
            repository = SnapshotRepository.from_file(config.snapshot_path)
        else:
            repository = WooCommerceRestRepository(
                f"{config.store_url.rstrip('/')}/wp-json",
                consumer_key=config.wc_consumer_key,
                consumer_secret=config.wc_consumer_secret,
                wp_username=config.wp_username,
                wp_app_password=config.wp_app_password,
                timeout=config.http_timeout,
            )

    resolver = LanguageResolver(repository, config.fallback_language)
    adapters = build_adapters(
        repository,
        resolver,
        store_url=config.store_url,
        max_content_length=config.max_content_length,
    )
    return Scanner(
        cache if cache is not None else build_cache_store(config.cache_backend, prefix=config.cache_prefix),
        adapters,
        resolver,
        batch_size=config.batch_size,
        cache_ttl=config.cache_ttl,
        max_batch_size=config.max_batch_size,
        cache_prefix=config.cache_prefix,
    )
