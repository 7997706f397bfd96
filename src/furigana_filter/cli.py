# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""furigana-filter CLI: filter, vocab, token commands.

Usage:
    python -m furigana_filter.cli filter SOURCE [--dictionary SRC | --no-dictionary] [-o PATH]
    python -m furigana_filter.cli vocab [--format text|json]
    python -m furigana_filter.cli token [--forget]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import httpx

from . import logging_config
from ._progress import alert, ask_token, print_step, status_spinner
from .config import Settings
from .credentials import INVALID_TOKEN_NOTICE, CredentialStore, forget_credential, resolve_credential
from .errors import FuriganaFilterError
from .page_source import dictionary_url_for, is_url, load_dictionary, load_page
from .pipeline import load_known_vocabulary, run
from .suppression.ruby_dom import declared_encoding, encode_page


def _store_for(settings: Settings) -> CredentialStore:
    return CredentialStore(settings.settings_path)


def _dictionary_output_path(output: Path) -> Path:
    return output.with_name(output.stem + ".dic.json")


async def _filter(args: argparse.Namespace, settings: Settings) -> int:
    async with httpx.AsyncClient(timeout=settings.timeout_s) as client:
        with status_spinner(f"Loading {args.source}"):
            page_html = await load_page(args.source, client=client)

            dictionary = None
            dic_source = args.dictionary
            if dic_source is None and not args.no_dictionary and is_url(args.source):
                dic_source = dictionary_url_for(args.source)
            if dic_source:
                dictionary = await load_dictionary(dic_source, client=client)

        # No spinner here: the token prompt may need the terminal
        print_step("Fetching known vocabulary from WaniKani")
        result = await run(
            page_html,
            store=_store_for(settings),
            prompt=ask_token,
            alert=alert,
            dictionary=dictionary,
            settings=settings,
            client=client,
        )

    if result is None:
        return 1

    report = result.report
    print_step(
        f"{len(result.known)} known words; hid {report.rubies_hidden}/{report.rubies_seen} readings"
        + (f", rewrote {report.definitions_rewritten} definitions" if report.dictionary_present else "")
    )

    page_bytes = encode_page(result.html, declared_encoding(result.html.encode("utf-8")))
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(page_bytes)
        if result.dictionary is not None and report.dictionary_present:
            dic_path = _dictionary_output_path(output)
            dic_path.write_text(json.dumps(result.dictionary, ensure_ascii=False), encoding="utf-8")
            print_step(f"Saved {output} and {dic_path}")
        else:
            print_step(f"Saved {output}")
    else:
        sys.stdout.flush()
        sys.stdout.buffer.write(page_bytes)
        sys.stdout.buffer.flush()
    return 0


async def _vocab(args: argparse.Namespace, settings: Settings) -> int:
    async with httpx.AsyncClient(timeout=settings.timeout_s) as client:
        print_step("Fetching known vocabulary from WaniKani")
        known = await load_known_vocabulary(_store_for(settings), ask_token, alert, settings=settings, client=client)
    if known is None:
        return 1

    words = sorted(known)
    if args.format == "json":
        print(json.dumps(words, ensure_ascii=False, indent=2))
    else:
        print("\n".join(words))
    return 0


async def _token(args: argparse.Namespace, settings: Settings) -> int:
    store = _store_for(settings)
    if args.forget:
        if forget_credential(store):
            print_step(f"Removed token from {store.path}")
        else:
            print_step("No stored token")
        return 0

    token = await resolve_credential(store, ask_token, settings=settings)
    if token is None:
        alert(INVALID_TOKEN_NOTICE)
        return 1
    print_step("WaniKani API token is available")
    return 0


_COMMANDS = {"filter": _filter, "vocab": _vocab, "token": _token}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hide furigana for the kanji and vocabulary you know on WaniKani",
        prog="furigana-filter",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _filter_epilog = """\
examples:
  %(prog)s https://www3.nhk.or.jp/news/easy/k10014000000000/k10014000000000.html -o out.html
  %(prog)s saved.html --dictionary saved.out.dic -o out.html
  %(prog)s saved.html --no-dictionary > out.html
"""
    p_filter = subparsers.add_parser(
        "filter",
        help="Rewrite a page, hiding readings of known words",
        epilog=_filter_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_filter.add_argument("source", metavar="SOURCE", help="Page URL or local HTML file")
    dic_group = p_filter.add_mutually_exclusive_group()
    dic_group.add_argument(
        "--dictionary",
        metavar="SRC",
        help="Pop-up dictionary JSON (URL or file); derived from NHK Easy article URLs by default",
    )
    dic_group.add_argument("--no-dictionary", action="store_true", help="Do not rewrite the pop-up dictionary")
    p_filter.add_argument("-o", "--output", metavar="PATH", help="Write the page here instead of stdout")

    p_vocab = subparsers.add_parser("vocab", help="Print the known vocabulary set")
    p_vocab.add_argument("--format", choices=["text", "json"], default="text")

    p_token = subparsers.add_parser("token", help="Check, store, or forget the WaniKani API token")
    p_token.add_argument("--forget", action="store_true", help="Delete the stored token")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging_config.configure(json_output=args.log_json, level="DEBUG" if args.verbose else "INFO")
    settings = Settings.from_env()

    try:
        code = asyncio.run(_COMMANDS[args.command](args, settings))
    except FuriganaFilterError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
