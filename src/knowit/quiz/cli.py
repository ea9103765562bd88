"""``knowit play``: fetch a session and run the Rich play loop."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm

from ..cache import AnswerCache
from ..core.config import ConfigError
from ..core.workspace import WorkspaceError
from ..models import QuizQuestion
from ..runtime import Runtime, bootstrap, open_answer_cache
from .builder import SessionBuilder, SessionLoadError, build_session
from .session import run_quiz_session
from .source import QuizApiSource

Loader = Callable[[int], list[QuizQuestion]]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowit play",
        description="Play a quiz session in the terminal.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to knowit.toml (defaults to KNOWIT_CONFIG or the workspace).",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of questions (defaults to session.question_count).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also log to stderr.",
    )
    return parser


def _session_loader(runtime: Runtime) -> Loader:
    upstream = runtime.config.upstream
    session = runtime.config.session

    def load(n: int) -> list[QuizQuestion]:
        source = QuizApiSource(
            upstream.base_url,
            user_agent=upstream.user_agent,
            timeout=upstream.timeout_seconds,
        )
        builder = SessionBuilder(
            source,
            categories=session.categories,
            difficulties=session.difficulties,
        )
        return build_session(builder, n)

    return load


def play_loop(
    load: Loader,
    count: int,
    console: Console,
    *,
    cache: Optional[AnswerCache] = None,
    input_provider: Optional[Callable[[], str]] = None,
    confirm: Optional[Callable[[str], bool]] = None,
) -> int:
    """Load and play sessions until the player declines another round."""

    ask = input_provider or (lambda: console.input("[bold]> [/]"))
    again = confirm or (lambda prompt: Confirm.ask(prompt, console=console))

    while True:
        with console.status("Loading questions..."):
            try:
                questions: Optional[list[QuizQuestion]] = load(count)
            except SessionLoadError:
                questions = None
        if questions is None:
            console.print("[bold red]Could not load the questions.[/]")
            if again("Retry?"):
                continue
            return 1

        result = run_quiz_session(questions, console, ask, cache=cache)
        if result.exit_action != "finished":
            return 0
        if not again("Play again?"):
            return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        runtime = bootstrap(config_path=args.config, verbose=args.verbose)
    except (ConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    count = args.count or runtime.config.session.question_count
    if count <= 0:
        parser.error("--count must be a positive integer")

    console = Console()
    runtime.logger.info(
        "Starting play",
        extra={"event": "play_start", "count": count},
    )
    return play_loop(
        _session_loader(runtime),
        count,
        console,
        cache=open_answer_cache(runtime),
    )


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
