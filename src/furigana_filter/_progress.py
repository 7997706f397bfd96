# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Progress indicators and user interaction for CLI output.

Uses ``rich`` for interactive terminals; stays silent when stderr is piped.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Generator

from rich.console import Console
from rich.prompt import Prompt

_console = Console(stderr=True)


@contextlib.contextmanager
def status_spinner(msg: str) -> Generator[None, None, None]:
    """Context manager showing a spinner with *msg* while active.

    Silent when stderr is not a TTY (piped output).
    """
    if not sys.stderr.isatty():
        yield
        return

    with _console.status(msg):
        yield


def print_step(msg: str) -> None:
    """Print a step message to stderr (only when interactive)."""
    if sys.stderr.isatty():
        _console.print(msg)


def ask_token(msg: str) -> str | None:
    """Blocking prompt for the API token (input hidden). ``None`` on EOF/Ctrl-C."""
    try:
        return Prompt.ask(msg, console=_console, password=True, default="", show_default=False)
    except (EOFError, KeyboardInterrupt):
        return None


def alert(msg: str) -> None:
    """Show a single user-facing error notice on stderr."""
    _console.print(f"[bold red]Error:[/bold red] {msg}", highlight=False)
