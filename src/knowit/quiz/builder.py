"""Assemble randomized quiz sessions from the upstream source."""

from __future__ import annotations

import asyncio
import html
import logging
import random
from collections.abc import Sequence
from typing import Optional, TypeVar

from ..models import Question, QuizQuestion, SamplingTuple
from .source import QuizSource, SourceResult

__all__ = [
    "SessionLoadError",
    "SessionBuilder",
    "build_random_tuples",
    "shuffle",
    "prepare_question",
    "build_session",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionLoadError(RuntimeError):
    """Raised when no question at all could be loaded for a session."""

    def __init__(self, message: str, *, failures: Sequence[SourceResult] = ()):
        super().__init__(message)
        self.failures = tuple(failures)


def build_random_tuples(
    count: int,
    categories: Sequence[str],
    difficulties: Sequence[str],
    rng: random.Random,
) -> list[SamplingTuple]:
    if not categories or not difficulties:
        raise ValueError("categories and difficulties must be non-empty")
    return [
        SamplingTuple(rng.choice(categories), rng.choice(difficulties))
        for _ in range(max(0, count))
    ]


def shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a Fisher-Yates shuffled copy of ``items``."""

    arr = list(items)
    for i in range(len(arr) - 1, 0, -1):
        j = rng.randrange(i + 1)
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def prepare_question(question: Question, rng: random.Random) -> QuizQuestion:
    """Decode HTML entities and attach a shuffled option set."""

    correct = html.unescape(question.correct_answer)
    incorrect = tuple(html.unescape(a) for a in question.incorrect_answers)
    return QuizQuestion(
        id=question.id,
        category=question.category,
        difficulty=question.difficulty,
        question=html.unescape(question.question),
        correct_answer=correct,
        incorrect_answers=incorrect,
        options=tuple(shuffle([correct, *incorrect], rng)),
    )


class SessionBuilder:
    """Build sessions of ``n`` questions, one upstream call per question.

    Each pass samples fresh (category, difficulty) tuples and fetches them
    concurrently. A single backfill pass replaces missing questions; if the
    total still falls short the session is simply shorter.
    """

    def __init__(
        self,
        source: QuizSource,
        *,
        categories: Sequence[str],
        difficulties: Sequence[str],
        rng: Optional[random.Random] = None,
    ) -> None:
        if not categories or not difficulties:
            raise ValueError("categories and difficulties must be non-empty")
        self.source = source
        self.categories = tuple(categories)
        self.difficulties = tuple(difficulties)
        self.rng = rng or random.Random()

    async def build(self, n: int) -> list[QuizQuestion]:
        if n <= 0:
            raise ValueError("n must be a positive integer")

        failures: list[SourceResult] = []
        collected = await self._fetch_pass(n, failures)

        if len(collected) < n:
            missing = n - len(collected)
            logger.info(
                "Backfilling %d missing question(s)",
                missing,
                extra={"event": "session_backfill", "missing": missing},
            )
            collected.extend(await self._fetch_pass(missing, failures))

        if not collected:
            logger.error(
                "No questions could be loaded",
                extra={
                    "event": "session_load_failed",
                    "failures": [f.describe() for f in failures],
                },
            )
            raise SessionLoadError(
                "Could not load any question from the quiz provider.",
                failures=failures,
            )

        selected = shuffle(collected, self.rng)[:n]
        if len(selected) < n:
            logger.warning(
                "Session is short: %d of %d question(s)",
                len(selected),
                n,
                extra={"event": "session_short"},
            )
        return [prepare_question(q, self.rng) for q in selected]

    async def _fetch_pass(
        self, count: int, failures: list[SourceResult]
    ) -> list[Question]:
        tuples = build_random_tuples(
            count, self.categories, self.difficulties, self.rng
        )
        results = await asyncio.gather(
            *(self._fetch_one(t) for t in tuples)
        )
        questions: list[Question] = []
        for result in results:
            if not result.succeeded:
                failures.append(result)
            elif result.questions:
                questions.append(result.questions[0])
        return questions

    async def _fetch_one(self, sample: SamplingTuple) -> SourceResult:
        try:
            return await self.source.fetch(
                limit=1,
                category=sample.category,
                difficulty=sample.difficulty,
            )
        except Exception as exc:  # noqa: BLE001 - isolate one failing call
            logger.warning(
                "Question fetch raised: %s",
                exc,
                extra={"event": "session_fetch_error"},
            )
            return SourceResult.failed("fetch_failed")


def build_session(builder: SessionBuilder, n: int) -> list[QuizQuestion]:
    """Synchronous wrapper around :meth:`SessionBuilder.build`."""

    return asyncio.run(builder.build(n))
