# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Furigana suppression against a known-vocabulary set.

Two independent strategies share one join key, the ruby base text:

- ``ruby_dom``: hides ``<rt>`` readings of ``<ruby>`` elements in a parsed page.
- ``dictionary``: rewrites ruby markup embedded as text in the page's
  pop-up dictionary data.

Both only read the vocabulary set.
"""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass

KnownVocabulary = Set[str]


@dataclass(frozen=True, slots=True)
class SuppressionReport:
    """What a suppression pass touched."""

    rubies_seen: int = 0  # <ruby> elements examined
    rubies_hidden: int = 0  # of those, matched and hidden
    definitions_rewritten: int = 0  # dictionary definitions changed
    dictionary_present: bool = False
