# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Embedded-markup strategy: drop readings from the pop-up dictionary text.

NHK News Web Easy ships its word definitions as data shaped like::

    {"reikai": {"entries": {"<key>": [{"hyouki": [...], "def": "<html>"}, ...]}}}

where ``def`` contains ruby markup in one fixed form. Only that exact form is
rewritten; this is a plain text substitution, not an HTML parse.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, MutableMapping

from furigana_filter.suppression import KnownVocabulary

logger = logging.getLogger(__name__)

# <ruby><rb>BASE</rb><rt>READING</rt></ruby>, no nested markup
RUBY_MARKUP_RE = re.compile(r"<ruby><rb>([^<]*)</rb><rt>[^<]*</rt></ruby>")


def strip_known_ruby(text: str, known: KnownVocabulary) -> str:
    """Replace each ruby whose base is in *known* with the bare base.

    Unknown rubies are kept verbatim, so text without a known match comes
    back unchanged.
    """
    return RUBY_MARKUP_RE.sub(lambda m: m.group(1) if m.group(1) in known else m.group(0), text)


def _entries(dictionary: Mapping | None) -> Mapping | None:
    if not isinstance(dictionary, Mapping):
        return None
    reikai = dictionary.get("reikai")
    if not isinstance(reikai, Mapping):
        return None
    entries = reikai.get("entries")
    return entries if isinstance(entries, Mapping) else None


def has_entries(dictionary: Mapping | None) -> bool:
    """``True`` when *dictionary* has the ``reikai.entries`` mapping."""
    return _entries(dictionary) is not None


def suppress_dictionary(dictionary: Mapping | None, known: KnownVocabulary) -> int:
    """Rewrite every definition in *dictionary* in place.

    A missing dictionary (or one without ``reikai.entries``) is skipped.
    Returns the number of definitions whose text changed.
    """
    entries = _entries(dictionary)
    if entries is None:
        logger.debug("No pop-up dictionary entries; skipping")
        return 0

    rewritten = 0
    for key, definitions in entries.items():
        if not isinstance(definitions, list):
            logger.debug("Dictionary entry %r is not a list; skipping", key)
            continue
        for definition in definitions:
            if not isinstance(definition, MutableMapping):
                continue
            text = definition.get("def")
            if not isinstance(text, str):
                continue
            new_text = strip_known_ruby(text, known)
            if new_text != text:
                definition["def"] = new_text
                rewritten += 1

    logger.debug("Rewrote %d dictionary definition(s)", rewritten)
    return rewritten
