# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""CLI smoke tests: argument parsing and command wiring with a fake API."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
import pytest
import structlog

from furigana_filter import cli
from furigana_filter.credentials import INVALID_TOKEN_MESSAGE, INVALID_TOKEN_NOTICE, TOKEN_KEY
from furigana_filter.suppression.ruby_dom import declared_encoding
from tests._api_helpers import VALID_TOKEN, FakeWaniKani, assignment

PAGE = "<html><body><p><ruby>人<rt>ひと</rt></ruby><ruby>大<rt>おお</rt></ruby></p></body></html>"


@pytest.fixture(autouse=True)
def _reset_logging():
    """main() reconfigures the root logger; restore it afterwards."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    logging.getLogger("httpx").setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def fake_api(monkeypatch):
    api = FakeWaniKani(assignments=[assignment(1, "kanji", 6)], subjects={1: "人"})
    real_client = httpx.AsyncClient

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(api.handler), **kwargs)

    monkeypatch.setattr(cli.httpx, "AsyncClient", _client)
    return api


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("FURIGANA_FILTER_API_BASE", "https://api.test/v2")
    monkeypatch.setenv("FURIGANA_FILTER_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.delenv("WANIKANI_API_TOKEN", raising=False)
    return tmp_path


def _store_token(env_dir, token=VALID_TOKEN):
    path = env_dir / "cfg" / "settings.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")
    return path


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_dictionary_options_exclusive(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["filter", "a.html", "--dictionary", "d", "--no-dictionary"])

    def test_filter_defaults(self):
        args = cli.build_parser().parse_args(["filter", "a.html"])
        assert args.dictionary is None
        assert args.no_dictionary is False
        assert args.output is None


class TestFilterCommand:
    def test_writes_output_and_dictionary(self, fake_api, env, tmp_path):
        _store_token(env)
        page = tmp_path / "page.html"
        page.write_text(PAGE, encoding="utf-8")
        dic = tmp_path / "page.out.dic"
        dic.write_text(
            json.dumps({"reikai": {"entries": {"1": [{"def": "<ruby><rb>人</rb><rt>ひと</rt></ruby>"}]}}}),
            encoding="utf-8",
        )
        out = tmp_path / "out" / "page.html"

        code = _run(["filter", str(page), "--dictionary", str(dic), "-o", str(out)])

        assert code == 0
        html = out.read_text(encoding="utf-8")
        assert 'style="visibility: hidden">ひと' in html
        assert "おお</rt>" in html
        rewritten = json.loads((out.parent / "page.dic.json").read_text(encoding="utf-8"))
        assert rewritten["reikai"]["entries"]["1"][0]["def"] == "人"

    def test_stdout_when_no_output(self, fake_api, env, tmp_path, capsys):
        _store_token(env)
        page = tmp_path / "page.html"
        page.write_text(PAGE, encoding="utf-8")
        assert _run(["filter", str(page)]) == 0
        assert "visibility: hidden" in capsys.readouterr().out

    def test_output_matches_declared_encoding(self, fake_api, env, tmp_path):
        _store_token(env)
        page = tmp_path / "page.html"
        source = '<html><head><meta charset="Shift_JIS"></head><body><ruby>人<rt>ひと</rt></ruby></body></html>'
        page.write_bytes(source.encode("shift_jis"))
        out = tmp_path / "out.html"
        assert _run(["filter", str(page), "-o", str(out)]) == 0
        data = out.read_bytes()
        html = data.decode(declared_encoding(data) or "utf-8")
        assert 'style="visibility: hidden">ひと' in html

    def test_invalid_token_exit_code(self, fake_api, env, tmp_path, monkeypatch):
        monkeypatch.setattr(cli, "ask_token", lambda msg: "bad-token")
        alerts = []
        monkeypatch.setattr(cli, "alert", alerts.append)
        page = tmp_path / "page.html"
        page.write_text(PAGE, encoding="utf-8")
        out = tmp_path / "out.html"
        assert _run(["filter", str(page), "-o", str(out)]) == 1
        assert len(alerts) == 1
        assert not out.exists()

    def test_missing_page_reports_error(self, fake_api, env, tmp_path, capsys):
        assert _run(["filter", str(tmp_path / "missing.html")]) == 1
        assert "Cannot read" in capsys.readouterr().err


class TestVocabCommand:
    def test_json(self, fake_api, env, capsys):
        _store_token(env)
        assert _run(["vocab", "--format", "json"]) == 0
        assert json.loads(capsys.readouterr().out) == ["人"]

    def test_text(self, fake_api, env, capsys):
        _store_token(env)
        assert _run(["vocab"]) == 0
        assert capsys.readouterr().out.strip() == "人"


class TestTokenCommand:
    def test_forget(self, env):
        path = _store_token(env)
        assert _run(["token", "--forget"]) == 0
        assert not path.exists()

    def test_prompt_and_store(self, fake_api, env, monkeypatch):
        monkeypatch.setattr(cli, "ask_token", lambda msg: VALID_TOKEN)
        assert _run(["token"]) == 0
        saved = json.loads((env / "cfg" / "settings.json").read_text(encoding="utf-8"))
        assert saved[TOKEN_KEY] == VALID_TOKEN

    def test_invalid_token_uses_shared_notice(self, fake_api, env, monkeypatch):
        monkeypatch.setattr(cli, "ask_token", lambda msg: "bad-token")
        alerts = []
        monkeypatch.setattr(cli, "alert", alerts.append)
        assert _run(["token"]) == 1
        assert alerts == [INVALID_TOKEN_NOTICE]
        assert INVALID_TOKEN_MESSAGE.startswith(INVALID_TOKEN_NOTICE)

    def test_forget_failure_reported(self, env, monkeypatch, capsys):
        _store_token(env)

        def _deny(self, missing_ok=False):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "unlink", _deny)
        assert _run(["token", "--forget"]) == 1
        assert "Error: cannot remove" in capsys.readouterr().err
