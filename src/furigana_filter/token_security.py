# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Token scrubbing utilities — keep WaniKani API tokens out of log output.

Standalone leaf module. Uses stdlib only (re).

WaniKani v2 tokens are UUIDs. Anything logged next to a request (URLs,
exception text) passes through here first.
"""

from __future__ import annotations

import re

# ── Constants ──────────────────────────────────────────────────────────

_UUID_TOKEN_RE = re.compile(r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b")
_TOKEN_REPLACEMENT = "********-****"

_BEARER_RE = re.compile(r"Bearer\s+\S+", re.IGNORECASE)

# ── Public API ─────────────────────────────────────────────────────────


def bearer_headers(token: str) -> dict[str, str]:
    """Return the Authorization header mapping for *token*."""
    return {"Authorization": f"Bearer {token}"}


def scrub_from_text(text: str) -> str:
    """Redact bearer credentials and UUID-shaped tokens in *text*."""
    if not text:
        return text
    text = _BEARER_RE.sub("Bearer ***", text)
    return _UUID_TOKEN_RE.sub(_TOKEN_REPLACEMENT, text)


def display_prefix(token: str) -> str:
    """Return a safe-for-logging prefix: ``1a2b3c4d...``."""
    if not token:
        return ""
    return token[:8] + "..."
