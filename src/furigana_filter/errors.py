# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""furigana-filter exception hierarchy.

All furigana-filter errors inherit from FuriganaFilterError, allowing callers
to catch the base class for any failure or specific subclasses for targeted
handling.
"""

from __future__ import annotations


class FuriganaFilterError(Exception):
    """Base exception for all furigana-filter errors."""


class CredentialError(FuriganaFilterError):
    """No usable WaniKani API token (missing, rejected, or unverifiable)."""


class FetchError(FuriganaFilterError):
    """A WaniKani API page could not be retrieved."""

    def __init__(self, message: str, *, url: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class PageDecodeError(FuriganaFilterError):
    """A WaniKani API response did not have the expected collection shape."""


class PageSourceError(FuriganaFilterError):
    """The page to rewrite could not be loaded."""
