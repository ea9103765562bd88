"""``knowit review``: browse or clear cached correct answers."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.prompt import Confirm

from ..core.config import ConfigError
from ..core.workspace import WorkspaceError
from ..runtime import bootstrap, open_answer_cache
from .view import ReviewApp, render_review_table


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowit review",
        description="Review the questions you answered correctly.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to knowit.toml (defaults to KNOWIT_CONFIG or the workspace).",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Print a table instead of opening the interactive screen.",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear the cached history.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt when clearing.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        runtime = bootstrap(config_path=args.config)
    except (ConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    cache = open_answer_cache(runtime)
    console = Console()

    if args.clear:
        if not args.yes and not Confirm.ask(
            "Clear the whole history?", console=console
        ):
            console.print("Nothing cleared.")
            return 0
        result = cache.clear()
        if not result.is_ok:
            console.print(f"[red]Could not clear the history ({result.reason}).[/]")
            return 1
        console.print("History cleared.")
        return 0

    if args.plain:
        render_review_table(console, cache.load_all())
        return 0

    ReviewApp(cache).run()
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
