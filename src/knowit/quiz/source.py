"""Adapter for the upstream quiz provider.

The provider answers ``GET <base_url>?limit=&category=&difficulty=`` with::

    {"count": 3, "quizzes": [{"_id": "...", "question": "...",
      "answer": "...", "badAnswers": ["..."], "category": "...",
      "difficulty": "..."}]}

``QuizApiSource.fetch`` maps that shape to :class:`Question` records and
reports failures as a :class:`SourceResult` instead of raising.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional, Protocol

import httpx

from ..models import Question

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "SourceError",
    "SourceResult",
    "QuizSource",
    "QuizApiSource",
    "clamp_limit",
    "parse_upstream_payload",
]

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
MAX_LIMIT = 20

SourceError = Literal["upstream_error", "fetch_failed"]


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one upstream request."""

    questions: tuple[Question, ...] = ()
    error: Optional[SourceError] = None
    status: Optional[int] = None

    @classmethod
    def ok(cls, questions: list[Question]) -> "SourceResult":
        return cls(questions=tuple(questions))

    @classmethod
    def failed(
        cls, error: SourceError, *, status: Optional[int] = None
    ) -> "SourceResult":
        return cls(error=error, status=status)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        if self.error is None:
            return f"ok ({len(self.questions)} question(s))"
        if self.status is not None:
            return f"{self.error} (status {self.status})"
        return self.error


class QuizSource(Protocol):
    async def fetch(
        self,
        *,
        limit: Any = DEFAULT_LIMIT,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> SourceResult: ...


def clamp_limit(raw: Any) -> int:
    """Coerce ``raw`` into ``[1, MAX_LIMIT]``; unusable values give 5."""

    if raw is None or isinstance(raw, bool):
        return DEFAULT_LIMIT
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, value))


def parse_upstream_payload(data: Mapping[str, Any]) -> list[Question]:
    """Map the provider's ``quizzes`` list onto canonical questions."""

    raw = data.get("quizzes")
    if not isinstance(raw, list):
        return []
    questions: list[Question] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        questions.append(
            Question.from_dict(
                {
                    "id": entry.get("_id"),
                    "category": entry.get("category"),
                    "difficulty": entry.get("difficulty"),
                    "question": entry.get("question"),
                    "correct_answer": entry.get("answer"),
                    "incorrect_answers": entry.get("badAnswers") or [],
                }
            )
        )
    return questions


class QuizApiSource:
    """HTTP client for the quiz provider built on ``httpx.AsyncClient``.

    Pass ``client`` to share a connection pool (or a mock transport in
    tests); otherwise the source owns a client for the lifetime of the
    ``async with`` block.
    """

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str = "KnowIt/1.0",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "QuizApiSource":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        *,
        limit: Any = DEFAULT_LIMIT,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> SourceResult:
        params: dict[str, str] = {"limit": str(clamp_limit(limit))}
        if category:
            params["category"] = category
        if difficulty:
            params["difficulty"] = difficulty
        headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

        if self._client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await self._request(client, params, headers)
        return await self._request(self._client, params, headers)

    async def _request(
        self,
        client: httpx.AsyncClient,
        params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> SourceResult:
        try:
            response = await client.get(
                self.base_url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Upstream request failed: %s",
                exc,
                extra={"event": "upstream_fetch_failed", "params": params},
            )
            return SourceResult.failed("fetch_failed")

        if not response.is_success:
            logger.warning(
                "Upstream returned status %s",
                response.status_code,
                extra={"event": "upstream_error", "params": params},
            )
            return SourceResult.failed(
                "upstream_error", status=response.status_code
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(
                "Upstream sent malformed JSON: %s",
                exc,
                extra={"event": "upstream_fetch_failed", "params": params},
            )
            return SourceResult.failed("fetch_failed")
        if not isinstance(data, Mapping):
            logger.warning(
                "Upstream payload is not an object",
                extra={"event": "upstream_fetch_failed", "params": params},
            )
            return SourceResult.failed("fetch_failed")

        questions = parse_upstream_payload(data)
        logger.debug(
            "Fetched %d question(s)",
            len(questions),
            extra={"event": "upstream_fetch", "params": params},
        )
        return SourceResult.ok(questions)
