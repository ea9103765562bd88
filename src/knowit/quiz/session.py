"""Rich-powered play loop for a trivia session.

The loop presents one question at a time, scores the first answer given to
each question and hands correct answers to the answer cache. State lives in
:class:`QuizSessionState` so the rules can be tested without a console.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..cache import AnswerCache, StorageResult
from .labels import category_style
from ..models import QuizQuestion

__all__ = [
    "InputProvider",
    "ExitAction",
    "AnswerOutcome",
    "QuizSessionState",
    "QuizSessionResult",
    "SessionCommand",
    "parse_session_command",
    "run_quiz_session",
]

logger = logging.getLogger(__name__)

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "empty"]

_KEYS = "ABCDEFGHIJ"


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of answering the current question."""

    option: str
    correct: bool
    saved: Optional[StorageResult] = None


@dataclass
class QuizSessionState:
    """Mutable session state: questions, position, score, finished flag."""

    questions: list[QuizQuestion]
    index: int = 0
    score: int = 0
    finished: bool = False
    selected: Optional[str] = None
    outcomes: list[AnswerOutcome] = field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> QuizQuestion:
        return self.questions[self.index]

    @property
    def has_answered(self) -> bool:
        return self.selected is not None

    def option_for(self, key: str) -> Optional[str]:
        normalized = key.strip().upper()[:1]
        if not normalized or normalized not in _KEYS:
            return None
        position = _KEYS.index(normalized)
        options = self.current.options
        return options[position] if position < len(options) else None

    def answer(
        self, option: str, cache: Optional[AnswerCache] = None
    ) -> Optional[AnswerOutcome]:
        """Score ``option``; later answers to the same question are ignored."""

        if self.finished or self.has_answered:
            return None
        if option not in self.current.options:
            return None
        question = self.current
        correct = question.is_correct(option)
        self.selected = option
        saved = None
        if correct:
            self.score += 1
            if cache is not None:
                saved = cache.save(question, question.options)
        outcome = AnswerOutcome(option=option, correct=correct, saved=saved)
        self.outcomes.append(outcome)
        return outcome

    def advance(self) -> None:
        if self.index < self.total_questions - 1:
            self.index += 1
            self.selected = None
        else:
            self.finished = True

    def reset(self, questions: Sequence[QuizQuestion]) -> None:
        self.questions = list(questions)
        self.index = 0
        self.score = 0
        self.finished = False
        self.selected = None
        self.outcomes = []


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    score: int
    total_questions: int
    answered_questions: int
    exit_action: ExitAction


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["select", "next", "quit"]
    choice: Optional[str] = None


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    lowered = text.lower()
    if lowered in {"", "n", "next"}:
        return SessionCommand("next")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.upper() in _KEYS:
        return SessionCommand("select", text.upper())
    if text.isdigit() and 1 <= int(text) <= len(_KEYS):
        return SessionCommand("select", _KEYS[int(text) - 1])
    return None


def run_quiz_session(
    questions: Sequence[QuizQuestion],
    console: Console,
    input_provider: InputProvider,
    *,
    cache: Optional[AnswerCache] = None,
) -> QuizSessionResult:
    """Run an interactive session and return the final score."""

    state = QuizSessionState(list(questions))
    if not state.questions:
        console.print("[yellow]No questions to play.[/]")
        return QuizSessionResult(0, 0, 0, "empty")

    exit_action: ExitAction = "quit"
    _render_question(console, state)
    while True:
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            break
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session early.[/]")
            break
        if command.type == "select":
            _handle_select(console, state, command.choice or "", cache)
            continue
        if not state.has_answered:
            console.print("[dim]Pick an answer first.[/]")
            continue
        state.advance()
        if state.finished:
            exit_action = "finished"
            break
        _render_question(console, state)

    result = QuizSessionResult(
        score=state.score,
        total_questions=state.total_questions,
        answered_questions=len(state.outcomes),
        exit_action=exit_action,
    )
    logger.info(
        "Session ended",
        extra={
            "event": "session_end",
            "score": result.score,
            "total": result.total_questions,
            "exit_action": exit_action,
        },
    )
    if exit_action == "finished":
        _render_summary(console, result)
    return result


def _handle_select(
    console: Console,
    state: QuizSessionState,
    key: str,
    cache: Optional[AnswerCache],
) -> None:
    if state.has_answered:
        console.print("[dim]Already answered. Press Enter for the next one.[/]")
        return
    option = state.option_for(key)
    if option is None:
        console.print(f"[red]'{key}' is not a valid choice for this question.[/]")
        return
    outcome = state.answer(option, cache)
    if outcome is None:
        return
    question = state.current
    if outcome.correct:
        console.print(Text("Correct!", style="bold green"))
    else:
        console.print(
            Text.assemble(
                ("Wrong. ", "bold red"),
                ("Answer: ", "dim"),
                (question.correct_answer, "bold"),
            )
        )
    if outcome.saved is not None and not outcome.saved.is_ok:
        console.print(
            "[dim]Could not save this answer for review "
            f"({outcome.saved.reason}).[/]"
        )
    last = state.index == state.total_questions - 1
    hint = "Press Enter to see your score." if last else "Press Enter to continue."
    console.print(Text(hint, style="dim"))


def _render_question(console: Console, state: QuizSessionState) -> None:
    question = state.current
    style = category_style(question.category)
    header = Text.assemble(
        (f"Question {state.index + 1}", "bold cyan"),
        (f" / {state.total_questions}", "dim"),
        (f"  ·  Score {state.score}", "dim"),
    )
    console.print()
    console.rule(header)
    meta = Text.assemble((f" {style.label} ", style.style))
    if question.difficulty:
        meta.append(f"  {question.difficulty}", style="dim")
    console.print(meta)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    for key, option in zip(_KEYS, question.options):
        table.add_row(key, option)
    console.print(table)
    if len(question.options) > len(_KEYS):
        logger.warning(
            "Question has %d options; only the first %d can be chosen",
            len(question.options),
            len(_KEYS),
            extra={"event": "options_truncated", "question_id": question.id},
        )
    keys = ", ".join(_KEYS[: len(question.options)])
    console.print(Text(f"Commands: [{keys}] to answer, q (quit)", style="dim"))


def _render_summary(console: Console, result: QuizSessionResult) -> None:
    console.print()
    console.rule(Text("Session complete", style="bold magenta"))
    total = result.total_questions
    pct = (result.score / total * 100) if total else 0.0
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", f"{result.score} / {total}")
    overview.add_row("Accuracy", f"{pct:.0f}%")
    console.print(overview)
