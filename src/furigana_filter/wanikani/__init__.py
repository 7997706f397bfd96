# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""WaniKani API v2 wire records.

Core data structures for the collection endpoints consumed by the resolver.
Each collection response is an envelope::

    {"object": "collection",
     "pages": {"next_url": "https://...", "previous_url": null, "per_page": 500},
     "data": [{"id": 1, "object": "assignment", "data": {...}}, ...]}

Decoding is all-or-nothing per page: one malformed item fails the whole page.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from furigana_filter.errors import PageDecodeError

# ── Fixed policy ─────────────────────────────────────────────────────

MASTERY_STAGE_FLOOR = 5  # "Guru 1"
MAX_SRS_STAGE = 9  # "Burned"


class SubjectType(StrEnum):
    """Subject kinds known to the API (only some count as vocabulary)."""

    RADICAL = "radical"
    KANJI = "kanji"
    VOCABULARY = "vocabulary"
    KANA_VOCABULARY = "kana_vocabulary"


KNOWN_SUBJECT_TYPES: tuple[SubjectType, ...] = (SubjectType.KANJI, SubjectType.VOCABULARY)


# ── Records ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PageEnvelope:
    """One page of a paginated collection."""

    items: tuple[Mapping[str, Any], ...]
    next_url: str | None = None


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    """A user's progress on one subject."""

    subject_id: int
    subject_type: str
    srs_stage: int

    @property
    def is_known(self) -> bool:
        """Stage at or above the floor and a kanji/vocabulary subject."""
        return (
            MASTERY_STAGE_FLOOR <= self.srs_stage <= MAX_SRS_STAGE
            and self.subject_type in KNOWN_SUBJECT_TYPES
        )


@dataclass(frozen=True, slots=True)
class SubjectRecord:
    """A learnable unit; ``slug`` is its canonical written form."""

    id: int
    slug: str


# ── Decoding ─────────────────────────────────────────────────────────


def decode_envelope(body: object) -> PageEnvelope:
    """Decode a collection response body into a :class:`PageEnvelope`."""
    if not isinstance(body, Mapping):
        raise PageDecodeError(f"collection body must be an object, got {type(body).__name__}")

    items = body.get("data")
    if not isinstance(items, list):
        raise PageDecodeError("collection body has no 'data' list")

    pages = body.get("pages")
    if pages is None:
        pages = {}
    if not isinstance(pages, Mapping):
        raise PageDecodeError("collection 'pages' must be an object")

    next_url = pages.get("next_url")
    if next_url is not None and not isinstance(next_url, str):
        raise PageDecodeError(f"'pages.next_url' must be a string or null, got {type(next_url).__name__}")

    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise PageDecodeError(f"collection item {index} is not an object")

    return PageEnvelope(items=tuple(items), next_url=next_url or None)


def _item_data(item: Mapping[str, Any], index: int) -> Mapping[str, Any]:
    data = item.get("data")
    if not isinstance(data, Mapping):
        raise PageDecodeError(f"item {index} has no nested 'data' object")
    return data


def _require_int(data: Mapping[str, Any], key: str, index: int) -> int:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise PageDecodeError(f"item {index}: '{key}' must be an integer")
    return value


def decode_assignments(page: PageEnvelope) -> list[AssignmentRecord]:
    """Decode every item of an assignments page."""
    records = []
    for index, item in enumerate(page.items):
        data = _item_data(item, index)
        subject_type = data.get("subject_type")
        if not isinstance(subject_type, str):
            raise PageDecodeError(f"item {index}: 'subject_type' must be a string")
        records.append(
            AssignmentRecord(
                subject_id=_require_int(data, "subject_id", index),
                subject_type=subject_type,
                srs_stage=_require_int(data, "srs_stage", index),
            )
        )
    return records


def decode_subjects(page: PageEnvelope) -> list[SubjectRecord]:
    """Decode every item of a subjects page."""
    records = []
    for index, item in enumerate(page.items):
        data = _item_data(item, index)
        slug = data.get("slug")
        if not isinstance(slug, str):
            raise PageDecodeError(f"item {index}: 'slug' must be a string")
        records.append(SubjectRecord(id=_require_int(item, "id", index), slug=slug))
    return records
