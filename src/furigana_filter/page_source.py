# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Where pages and their pop-up dictionaries come from.

Sources are either ``http(s)://`` URLs (fetched with httpx) or local paths.
The page is required; the dictionary is optional and any failure to load it
is logged and treated as "no dictionary".
"""

from __future__ import annotations

import fnmatch
import json
import logging
import re
from pathlib import Path
from urllib.parse import urlparse

import httpx

from furigana_filter.errors import PageSourceError

logger = logging.getLogger(__name__)

# Pages the furigana filter is meant for
ACTIVATION_PATTERNS: tuple[str, ...] = (
    "https://www3.nhk.or.jp/news/easy*",
    "https://trans.hiragana.jp/*",
)

# .../news/easy/k10014000000000/k10014000000000.html
_NHK_EASY_ARTICLE_RE = re.compile(r"^(https://www3\.nhk\.or\.jp/news/easy/(?:[^/]+/)*)(k\d+)\.html$")


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def is_supported_url(url: str) -> bool:
    """``True`` if *url* matches one of the activation patterns."""
    return any(fnmatch.fnmatchcase(url, pattern) for pattern in ACTIVATION_PATTERNS)


def dictionary_url_for(article_url: str) -> str | None:
    """Return the pop-up dictionary URL of an NHK Easy article, else ``None``."""
    m = _NHK_EASY_ARTICLE_RE.match(article_url.split("?", 1)[0].split("#", 1)[0])
    if m is None:
        return None
    return f"{m.group(1)}{m.group(2)}.out.dic"


async def _fetch(client: httpx.AsyncClient, url: str) -> httpx.Response:
    response = await client.get(url, follow_redirects=True)
    response.raise_for_status()
    return response


async def load_page(source: str, *, client: httpx.AsyncClient) -> bytes:
    """Return the raw HTML bytes at *source* (URL or file path).

    The bytes are left undecoded; the parser reads the charset from the
    document itself.

    Raises:
        PageSourceError: the page could not be fetched or read.
    """
    if is_url(source):
        if not is_supported_url(source):
            logger.warning("%s is not an NHK Easy or hiragana.jp page; rewriting anyway", source)
        try:
            return (await _fetch(client, source)).content
        except httpx.HTTPError as e:
            raise PageSourceError(f"Cannot fetch {source}: {e}") from e
    try:
        return Path(source).read_bytes()
    except OSError as e:
        raise PageSourceError(f"Cannot read {source}: {e}") from e


async def load_dictionary(source: str, *, client: httpx.AsyncClient) -> dict | None:
    """Return the decoded dictionary at *source*, or ``None`` if unavailable."""
    try:
        if is_url(source):
            raw = (await _fetch(client, source)).text
        else:
            raw = Path(source).read_text(encoding="utf-8")
        # Some files start with a UTF-8 BOM
        data = json.loads(raw.lstrip("\ufeff"))
    except (httpx.HTTPError, OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.info("No pop-up dictionary from %s: %s", source, e)
        return None
    if not isinstance(data, dict):
        logger.info("Ignoring dictionary at %s: top level is %s", source, type(data).__name__)
        return None
    return data
