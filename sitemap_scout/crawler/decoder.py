# sitemap_scout/crawler/decoder.py
"""
Response decoder: undoes gzip / deflate / brotli content-encoding and returns text.

Decompression problems never fail a fetch: the payload is then treated as
already-decoded text.
"""
from __future__ import annotations

import gzip
import re
import zlib
from typing import List

import brotli

from sitemap_scout.logger import logger

_GZIP_MAGIC = b"\x1f\x8b"
_GZ_SUFFIX_RE = re.compile(r"\.gz($|\?)", re.IGNORECASE)
_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
_DECODE_ERRORS = (OSError, EOFError, zlib.error, brotli.error)


def _inflate(raw: bytes) -> bytes:
    try:
        return zlib.decompress(raw)
    except zlib.error:
        # raw deflate stream without zlib header
        return zlib.decompress(raw, -zlib.MAX_WBITS)


_DECOMPRESSORS = {
    "gzip": gzip.decompress,
    "x-gzip": gzip.decompress,
    "deflate": _inflate,
    "br": brotli.decompress,
}


def _encodings(content_encoding: str, content_type: str, raw: bytes, source_url: str) -> List[str]:
    codings = [c.strip().lower() for c in (content_encoding or "").split(",") if c.strip()]
    codings = [c for c in codings if c in _DECOMPRESSORS]
    if codings:
        return codings
    if "gzip" in (content_type or "").lower() or _GZ_SUFFIX_RE.search(source_url or ""):
        return ["gzip"]
    if raw.startswith(_GZIP_MAGIC):
        return ["gzip"]
    return []


def _charset(content_type: str) -> str:
    match = _CHARSET_RE.search(content_type or "")
    return match.group(1) if match else "utf-8"


def decode_body(
    raw: bytes,
    content_encoding: str = "",
    content_type: str = "",
    source_url: str = "",
) -> str:
    """Return *raw* as text, decompressing it first when it looks compressed.

    Encodings listed in ``Content-Encoding`` are undone last-applied first.
    Without that header, a gzip Content-Type, a ``.gz`` URL suffix or the
    gzip magic bytes switch gzip decompression on.
    """
    payload = raw
    for coding in reversed(_encodings(content_encoding, content_type, raw, source_url)):
        try:
            payload = _DECOMPRESSORS[coding](payload)
        except _DECODE_ERRORS as exc:
            logger.debug("Не удалось распаковать %s (%s): %s", source_url or "<body>", coding, exc)
            payload = raw
            break

    charset = _charset(content_type)
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


__all__ = ["decode_body"]
