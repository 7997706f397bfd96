# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Orchestrator: credential → known vocabulary → furigana suppression.

Every network round trip is awaited in sequence on one ``httpx.AsyncClient``.
The vocabulary set is frozen before any page mutation starts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass, field

import httpx

from furigana_filter.config import Settings
from furigana_filter.credentials import INVALID_TOKEN_MESSAGE, CredentialStore, TokenPrompt, resolve_credential
from furigana_filter.suppression import SuppressionReport
from furigana_filter.suppression.dictionary import has_entries, suppress_dictionary
from furigana_filter.suppression.ruby_dom import suppress_page_html
from furigana_filter.wanikani.resolver import resolve_known_vocabulary

logger = logging.getLogger(__name__)

Alert = Callable[[str], None]


@dataclass
class PipelineResult:
    """Rewritten page plus what was done to it."""

    html: str
    known: frozenset[str]
    report: SuppressionReport
    dictionary: MutableMapping | None = field(default=None, repr=False)


def apply_suppression(
    page_html: str | bytes,
    known: frozenset[str],
    dictionary: MutableMapping | None = None,
) -> tuple[str, SuppressionReport]:
    """Run both suppression strategies; the dictionary is rewritten in place."""
    html, seen, hidden = suppress_page_html(page_html, known)

    present = has_entries(dictionary)
    rewritten = suppress_dictionary(dictionary, known) if present else 0

    report = SuppressionReport(
        rubies_seen=seen,
        rubies_hidden=hidden,
        definitions_rewritten=rewritten,
        dictionary_present=present,
    )
    logger.info(
        "Hid %d/%d readings, rewrote %d dictionary definition(s)",
        hidden,
        seen,
        rewritten,
    )
    return html, report


async def load_known_vocabulary(
    store: CredentialStore,
    prompt: TokenPrompt,
    alert: Alert,
    *,
    settings: Settings,
    client: httpx.AsyncClient,
) -> frozenset[str] | None:
    """Resolve the credential and fetch the vocabulary; alert once and return ``None`` on a bad token."""
    token = await resolve_credential(store, prompt, client=client, settings=settings)
    if token is None:
        alert(INVALID_TOKEN_MESSAGE)
        return None
    return await resolve_known_vocabulary(token, client=client, settings=settings)


async def run(
    page_html: str | bytes,
    *,
    store: CredentialStore,
    prompt: TokenPrompt,
    alert: Alert,
    dictionary: MutableMapping | None = None,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> PipelineResult | None:
    """Hide the furigana the user already knows in *page_html* (and *dictionary*).

    Returns ``None``, after a single *alert*, when no valid token is available;
    the page is not touched in that case.
    """
    settings = settings or Settings.from_env()
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.timeout_s)

    try:
        known = await load_known_vocabulary(store, prompt, alert, settings=settings, client=client)
    finally:
        if owns_client:
            await client.aclose()

    if known is None:
        return None

    html, report = apply_suppression(page_html, known, dictionary)
    return PipelineResult(html=html, known=known, report=report, dictionary=dictionary)
