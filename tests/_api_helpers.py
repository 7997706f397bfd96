# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""In-process fake of the WaniKani v2 collection endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

API_BASE = "https://api.test/v2"
VALID_TOKEN = "0a1b2c3d-4e5f-6789-abcd-ef0123456789"


def assignment(subject_id: int, subject_type: str = "vocabulary", srs_stage: int = 5) -> dict:
    return {
        "id": 10_000 + subject_id,
        "object": "assignment",
        "data": {"subject_id": subject_id, "subject_type": subject_type, "srs_stage": srs_stage},
    }


def subject(subject_id: int, slug: str, obj: str = "vocabulary") -> dict:
    return {"id": subject_id, "object": obj, "data": {"slug": slug, "characters": slug}}


def envelope(items: list[dict], next_url: str | None) -> dict:
    return {
        "object": "collection",
        "pages": {"per_page": len(items), "next_url": next_url, "previous_url": None},
        "total_count": len(items),
        "data": items,
    }


@dataclass
class FakeWaniKani:
    """Serves paginated assignments/subjects for one valid token.

    ``fail_paths`` maps ``(path, page_index)`` to a status code (or 0 for a
    transport error) to inject a failure on that page.
    """

    assignments: list[dict] = field(default_factory=list)
    subjects: dict[int, str] = field(default_factory=dict)
    page_size: int = 2
    fail_paths: dict[tuple[str, int], int] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {VALID_TOKEN}"

    def _page(self, request: httpx.Request, path: str, items: list[dict]) -> httpx.Response:
        index = int(request.url.params.get("page", "0"))
        status = self.fail_paths.get((path, index))
        if status == 0:
            raise httpx.ConnectError("connection refused", request=request)
        if status is not None:
            return httpx.Response(status, json={"error": "boom", "code": status})

        chunk = items[index * self.page_size : (index + 1) * self.page_size]
        has_next = (index + 1) * self.page_size < len(items)
        next_url = None
        if has_next:
            params = dict(request.url.params)
            params["page"] = str(index + 1)
            query = "&".join(f"{k}={v}" for k, v in params.items())
            # The real API percent-encodes commas in cursor URLs
            next_url = f"{API_BASE}/{path}?{query}".replace(",", "%2C")
        return httpx.Response(200, json=envelope(chunk, next_url))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "Unauthorized. Nice try.", "code": 401})

        path = request.url.path.removeprefix("/v2/")
        if path == "voice_actors":
            return httpx.Response(200, json=envelope([], None))
        if path == "assignments":
            return self._page(request, path, self.assignments)
        if path == "subjects":
            ids = [int(i) for i in request.url.params.get("ids", "").split(",") if i]
            items = [subject(i, self.subjects[i]) for i in ids if i in self.subjects]
            return self._page(request, path, items)
        return httpx.Response(404, json={"error": "Not found", "code": 404})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/v2/") for r in self.requests]
