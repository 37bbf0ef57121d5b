"""Text normalisation helpers for chunk content."""

from __future__ import annotations

import html
import re
from typing import Iterable, Optional

_tag_re = re.compile(r"<[^>]+>")
_script_re = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_whitespace_re = re.compile(r"\s+")

DEFAULT_MAX_CONTENT_LENGTH = 10000


def strip_tags(value: Optional[str]) -> str:
    if not value:
        return ""
    without_scripts = _script_re.sub(" ", str(value))
    return _tag_re.sub(" ", without_scripts)


def sanitize_content(value: Optional[str]) -> str:
    """Strip markup, decode entities and collapse whitespace."""
    text = html.unescape(strip_tags(value))
    return _whitespace_re.sub(" ", text).strip()


def truncate_content(content: str, max_length: int = DEFAULT_MAX_CONTENT_LENGTH) -> str:
    """Cut ``content`` at the last full word before ``max_length`` and mark it."""
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."


def join_lines(lines: Iterable[Optional[str]]) -> str:
    return "\n".join(line for line in lines if line)
