# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""WaniKani API token resolution — storage, prompting, and validation.

A stored token is trusted as-is. A newly entered token is checked once with a
cheap authenticated GET (``/voice_actors``) and persisted only if that request
succeeds. There is no retry and no re-prompt; callers treat ``None`` as fatal.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path

import httpx

from furigana_filter.config import Settings
from furigana_filter.errors import CredentialError
from furigana_filter.token_security import bearer_headers, display_prefix, scrub_from_text

logger = logging.getLogger(__name__)

TOKEN_KEY = "WK_API_TOKEN"
VALIDATION_ENDPOINT = "voice_actors"

INVALID_TOKEN_NOTICE = "The WaniKani API Token appears to be invalid."
INVALID_TOKEN_MESSAGE = f"{INVALID_TOKEN_NOTICE} furigana-filter will not modify the page."
PROMPT_MESSAGE = "Please enter your WaniKani API Token to continue"

TokenPrompt = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class CredentialStore:
    """Single-value token store backed by a JSON settings file.

    Unknown keys in the file are preserved on write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Cannot read settings file %s: %s", self._path, e)
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable settings file %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> str | None:
        value = self._read().get(TOKEN_KEY)
        return value if isinstance(value, str) and value else None

    def _write(self, data: dict) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.chmod(tmp, 0o600)
            tmp.replace(self._path)
        except OSError as e:
            raise CredentialError(f"cannot write {self._path}: {e}") from e

    def set(self, token: str) -> None:
        data = self._read()
        data[TOKEN_KEY] = token
        self._write(data)

    def clear(self) -> bool:
        """Remove the stored token. Returns ``True`` if one was present.

        Raises:
            CredentialError: the settings file could not be rewritten or removed.
        """
        data = self._read()
        if TOKEN_KEY not in data:
            return False
        del data[TOKEN_KEY]
        if data:
            self._write(data)
            return True
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise CredentialError(f"cannot remove {self._path}: {e}") from e
        return True


# ---------------------------------------------------------------------------
# Validation + resolution
# ---------------------------------------------------------------------------


async def validate_token(client: httpx.AsyncClient, token: str, settings: Settings) -> bool:
    """Return ``True`` if the API accepts *token* (2xx on a side-effect-free endpoint)."""
    url = settings.endpoint(VALIDATION_ENDPOINT)
    try:
        response = await client.get(url, headers=bearer_headers(token))
    except httpx.HTTPError as e:
        logger.error("Token validation request failed: %s", scrub_from_text(f"{type(e).__name__}: {e}"))
        return False
    if not response.is_success:
        logger.warning("Token %s rejected by WaniKani (HTTP %d)", display_prefix(token), response.status_code)
        return False
    return True


async def resolve_credential(
    store: CredentialStore,
    prompt: TokenPrompt,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str | None:
    """Return a usable token, or ``None`` when none could be obtained.

    Order: ``WANIKANI_API_TOKEN`` (via settings) → stored token → prompt.
    Only a prompted token is validated, and only a validated one is stored.
    """
    settings = settings or Settings.from_env()

    if settings.env_token:
        return settings.env_token

    stored = store.get()
    if stored:
        logger.debug("Using stored token %s", display_prefix(stored))
        return stored

    entered = (prompt(PROMPT_MESSAGE) or "").strip()
    if not entered:
        logger.warning("No WaniKani API token entered")
        return None

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.timeout_s)
    try:
        valid = await validate_token(client, entered, settings)
    finally:
        if owns_client:
            await client.aclose()

    if not valid:
        return None

    try:
        store.set(entered)
    except CredentialError as e:
        # Still usable for this run; the user is prompted again next time
        logger.warning("Token accepted but not saved: %s", e)
    else:
        logger.info("Stored WaniKani API token %s in %s", display_prefix(entered), store.path)
    return entered


def forget_credential(store: CredentialStore) -> bool:
    """Delete the stored token. Returns ``True`` if one was removed."""
    removed = store.clear()
    if removed:
        logger.info("Removed stored WaniKani API token from %s", store.path)
    return removed
