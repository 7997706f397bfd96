# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""furigana-filter: hide furigana for words you already know on WaniKani.

Builds the set of kanji and vocabulary at SRS stage Guru 1 or above from the
WaniKani API, then removes their readings from an NHK News Web Easy page:
- ruby readings in the page markup are hidden (``visibility: hidden``)
- ruby markup in the pop-up dictionary text is reduced to the bare word
"""

from __future__ import annotations

from .pipeline import PipelineResult, apply_suppression, run
from .suppression import SuppressionReport

__all__ = ["PipelineResult", "SuppressionReport", "apply_suppression", "run"]
