# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Known-vocabulary resolution — assignments → subject ids → subject slugs.

Pipeline:
  1. Walk ``/assignments`` filtered server-side to SRS stages 5-9 and the
     kanji/vocabulary subject types; the same policy is re-applied client-side
     to every decoded record.
  2. Walk ``/subjects?ids=...`` in fixed-size id batches and collect each
     subject's ``slug``.

The token is passed explicitly; nothing is held at module level.
"""

from __future__ import annotations

import logging

import httpx

from furigana_filter.config import Settings
from furigana_filter.token_security import bearer_headers
from furigana_filter.wanikani import (
    KNOWN_SUBJECT_TYPES,
    MASTERY_STAGE_FLOOR,
    MAX_SRS_STAGE,
    PageEnvelope,
    decode_assignments,
    decode_subjects,
)
from furigana_filter.wanikani.pagination import fetch_all_pages

logger = logging.getLogger(__name__)

# Subject ids per /subjects request (the endpoint's page size)
SUBJECT_BATCH_SIZE = 1000


def assignments_url(settings: Settings) -> str:
    """Assignments endpoint with the fixed mastery/subject-type filters."""
    stages = ",".join(str(stage) for stage in range(MASTERY_STAGE_FLOOR, MAX_SRS_STAGE + 1))
    types = ",".join(str(t) for t in KNOWN_SUBJECT_TYPES)
    return settings.endpoint(f"assignments?srs_stages={stages}&subject_types={types}")


def subjects_url(settings: Settings, subject_ids: list[int]) -> str:
    """Subjects endpoint filtered to *subject_ids*."""
    return settings.endpoint("subjects?ids=" + ",".join(str(i) for i in subject_ids))


def _batched(ids: list[int], size: int) -> list[list[int]]:
    return [ids[i : i + size] for i in range(0, len(ids), size)]


async def collect_known_subject_ids(
    client: httpx.AsyncClient, token: str, settings: Settings
) -> tuple[set[int], bool]:
    """Return ``(subject_ids, complete)`` for all known assignments."""
    subject_ids: set[int] = set()
    skipped = 0

    def on_page(page: PageEnvelope) -> None:
        nonlocal skipped
        records = decode_assignments(page)
        for record in records:
            if record.is_known:
                subject_ids.add(record.subject_id)
            else:
                skipped += 1

    result = await fetch_all_pages(client, assignments_url(settings), bearer_headers(token), on_page)
    if skipped:
        logger.debug("Ignored %d assignment(s) outside the stage/type policy", skipped)
    logger.info("Collected %d subject id(s) from %d assignments page(s)", len(subject_ids), result.pages)
    return subject_ids, result.complete


async def collect_subject_slugs(
    client: httpx.AsyncClient,
    token: str,
    settings: Settings,
    subject_ids: set[int],
    vocabulary: set[str],
) -> bool:
    """Add the slug of every subject in *subject_ids* to *vocabulary*.

    Returns ``True`` when every batch was walked to the end.
    """
    complete = True

    def on_page(page: PageEnvelope) -> None:
        records = decode_subjects(page)
        vocabulary.update(record.slug for record in records)

    for batch in _batched(sorted(subject_ids), SUBJECT_BATCH_SIZE):
        result = await fetch_all_pages(client, subjects_url(settings, batch), bearer_headers(token), on_page)
        complete = complete and result.complete
    return complete


async def resolve_known_vocabulary(
    token: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> frozenset[str]:
    """Build the set of kanji and vocabulary the user knows (Guru 1 or above).

    A failed page ends that walk early; whatever was gathered is still
    returned and a partial-result warning is logged.
    """
    settings = settings or Settings.from_env()
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.timeout_s)

    try:
        subject_ids, ids_complete = await collect_known_subject_ids(client, token, settings)
        vocabulary: set[str] = set()
        slugs_complete = await collect_subject_slugs(client, token, settings, subject_ids, vocabulary)
    finally:
        if owns_client:
            await client.aclose()

    if not (ids_complete and slugs_complete):
        logger.warning(
            "Known vocabulary is partial (%d entries): at least one API page could not be fetched",
            len(vocabulary),
        )
    else:
        logger.info("Resolved %d known vocabulary entries", len(vocabulary))
    return frozenset(vocabulary)
