# File: sitemap_scout/utils.py
"""sitemap_scout.utils: утилиты для нормализации адресов и работы со списками URL."""

from __future__ import annotations

import re
from typing import Collection, List, Sequence, Tuple
from urllib.parse import urlsplit

from sitemap_scout.logger import logger

__all__: Sequence[str] = (
    "ensure_scheme",
    "normalize_origin",
    "split_target",
    "strip_scheme",
    "remove_duplicates",
)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def ensure_scheme(target: str, default: str = "https") -> str:
    """Добавляет схему к голому домену: ``example.com/a`` → ``https://example.com/a``."""
    target = target.strip()
    if _SCHEME_RE.match(target):
        return target
    return f"{default}://{target.lstrip('/')}"


def strip_scheme(url: str) -> str:
    """Убирает ``http://``/``https://`` в начале адреса."""
    return re.sub(r"^https?://", "", url.strip(), flags=re.IGNORECASE)


def normalize_origin(target: str) -> str:
    """Возвращает ``scheme://host[:port]`` в нижнем регистре и без завершающего слеша."""
    parsed = urlsplit(ensure_scheme(target))
    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https"):
        scheme = "https"
    netloc = parsed.netloc.lower().rstrip("/")
    if not netloc:
        raise ValueError(f"Не удалось определить хост: {target!r}")
    origin = f"{scheme}://{netloc}"
    logger.debug("Normalized origin: %s -> %s", target, origin)
    return origin


def split_target(url: str) -> Tuple[str, str]:
    """Разбивает URL на (хост без ``www.``, путь+query)."""
    parsed = urlsplit(ensure_scheme(url))
    netloc = parsed.netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return netloc, path


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
