# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import furigana_filter  # noqa: F401
except ImportError:
    raise ImportError("furigana_filter is not installed. Run: pip install -e '.[dev]'") from None

import httpx
import pytest

from furigana_filter.config import Settings


@pytest.fixture(autouse=True)
def _block_real_network(request, monkeypatch):
    """Safety net: prevent real HTTP requests in unit tests.

    Tests talk to the fake API in ``tests/_api_helpers.py`` through
    ``httpx.MockTransport``. A client built without a transport would go
    to the network; this fixture turns that into a clear error instead.

    Opt out with::

        @pytest.mark.allow_network
    """
    if "allow_network" in request.keywords:
        return

    async def _no_network(self, request):
        raise RuntimeError(f"Test tried to reach the network: {request.url}. Pass a MockTransport client.")

    monkeypatch.setattr(httpx.AsyncHTTPTransport, "handle_async_request", _no_network)


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at the fake API and a temporary config dir."""
    return Settings(api_base="https://api.test/v2", config_dir=tmp_path / "config")
