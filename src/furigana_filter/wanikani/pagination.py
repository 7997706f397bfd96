# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Cursor-based pagination over WaniKani collection endpoints.

Each response names the URL of the next page in ``pages.next_url``; the walk
ends when that field is null. Pages are fetched strictly one at a time.

Failure policy: a transport error, a non-2xx status, a body that is not JSON,
or a page that fails to decode stops the walk. The failure is logged (with
credentials scrubbed) and the result is marked incomplete. There are no retries.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from urllib.parse import unquote

import httpx

from furigana_filter.errors import FetchError, PageDecodeError
from furigana_filter.token_security import scrub_from_text
from furigana_filter.wanikani import PageEnvelope, decode_envelope

logger = logging.getLogger(__name__)

PageCallback = Callable[[PageEnvelope], None]


@dataclass(frozen=True, slots=True)
class PaginationResult:
    """Outcome of a full pagination walk."""

    pages: int  # pages fetched and handed to the callback
    complete: bool  # False when the walk stopped on a failure


async def fetch_page(client: httpx.AsyncClient, url: str, headers: Mapping[str, str]) -> PageEnvelope:
    """GET *url* and decode it as a collection page.

    Raises:
        FetchError: transport failure or non-2xx status.
        PageDecodeError: body is not JSON or not a collection envelope.
    """
    try:
        response = await client.get(url, headers=dict(headers))
    except httpx.HTTPError as e:
        raise FetchError(f"request failed: {type(e).__name__}: {e}", url=url) from e

    if not response.is_success:
        raise FetchError(f"HTTP {response.status_code}", url=url, status=response.status_code)

    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PageDecodeError(f"response body is not JSON: {e}") from e

    return decode_envelope(body)


async def fetch_all_pages(
    client: httpx.AsyncClient,
    initial_url: str,
    headers: Mapping[str, str],
    on_page: PageCallback,
) -> PaginationResult:
    """Walk every page starting at *initial_url*, calling *on_page* for each.

    *on_page* may raise :class:`PageDecodeError` to reject a page; that is
    handled the same way as a fetch failure.
    """
    url: str | None = initial_url
    pages = 0
    while url:
        try:
            page = await fetch_page(client, url, headers)
            on_page(page)
        except (FetchError, PageDecodeError) as e:
            logger.warning(
                "Pagination stopped after %d page(s) at %s: %s",
                pages,
                scrub_from_text(url),
                scrub_from_text(str(e)),
            )
            return PaginationResult(pages=pages, complete=False)

        pages += 1
        # Cursor URLs come back percent-encoded (commas in filters)
        url = unquote(page.next_url) if page.next_url else None

    logger.debug("Pagination finished: %d page(s) from %s", pages, scrub_from_text(initial_url))
    return PaginationResult(pages=pages, complete=True)
