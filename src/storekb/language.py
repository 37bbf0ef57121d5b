"""Store language resolution for chunk tagging and cache keys."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, List, Optional

from storekb.config import settings
from storekb.errors import StoreKBError

logger = logging.getLogger(__name__)


class LanguageResolver:
    """Reports the store's current language and multilingual status.

    The multilingual configuration is read once from the repository and
    memoised. Single-language stores, or stores whose configuration cannot
    be read, resolve to ``fallback_language``.
    """

    def __init__(self, repository, fallback_language: Optional[str] = None) -> None:
        self._repository = repository
        self.fallback_language = fallback_language or settings.fallback_language
        self._config: Optional[Dict[str, Any]] = None
        self._loaded = False
        self._lock = Lock()

    def _load(self) -> Optional[Dict[str, Any]]:
        if self._loaded:
            return self._config
        with self._lock:
            if not self._loaded:
                try:
                    self._config = self._repository.get_multilingual_config() or None
                except StoreKBError as exc:
                    logger.error("Error reading multilingual configuration: %s", exc)
                    self._config = None
                self._loaded = True
                if self._config:
                    logger.debug(
                        "Multilingual support detected (%s), current language %s",
                        self._config.get("plugin"),
                        self._config.get("current"),
                    )
        return self._config

    def refresh(self) -> None:
        """Forget the memoised configuration, e.g. after a language switch."""
        with self._lock:
            self._config = None
            self._loaded = False

    def is_multilingual_active(self) -> bool:
        return self._load() is not None

    def get_plugin(self) -> Optional[str]:
        config = self._load()
        return config.get("plugin") if config else None

    def get_default_language(self) -> str:
        config = self._load()
        if not config:
            return self.fallback_language
        return config.get("default") or self.fallback_language

    def get_current_language(self) -> str:
        config = self._load()
        if not config:
            return self.fallback_language
        return config.get("current") or self.get_default_language()

    def get_available_languages(self) -> List[str]:
        config = self._load()
        if not config:
            return [self.fallback_language]
        return list(config.get("available") or [self.get_default_language()])

    def get_content_language(self, item: Dict[str, Any], language: Optional[str] = None) -> str:
        """Language of one raw item: its own tag, else the scan language."""
        own = item.get("lang") or item.get("language")
        if own and self.is_multilingual_active():
            return str(own)
        return language or self.get_current_language()

    def cache_key(self, key: str, language: Optional[str] = None) -> str:
        if not self.is_multilingual_active():
            return key
        return f"{key}_lang_{language or self.get_current_language()}"
