"""Persistent cache of correctly answered questions.

Records live as a single JSON array under one storage key, newest first,
unique by identity key and capped at ``max_items``. The cache never raises to
its caller: storage problems degrade to :class:`StorageResult.unavailable`
on writes and to an empty list on reads.
"""

from __future__ import annotations

import json
import math
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, MutableMapping, Optional, Protocol

from ..models import Question, QuizQuestion
from .storage import StoragePort, StorageResult, StorageUnavailable

__all__ = [
    "STORAGE_KEY",
    "MAX_ITEMS",
    "CachedAnswer",
    "AnswerCache",
    "identity_key",
    "hash_string",
]

logger = logging.getLogger(__name__)

STORAGE_KEY = "knowit.correctQuestions.v1"
MAX_ITEMS = 200

Clock = Callable[[], int]


class _Identifiable(Protocol):
    id: Optional[str]
    category: str
    difficulty: Optional[str]
    question: str


@dataclass(frozen=True)
class CachedAnswer:
    """A correctly answered question as persisted in the cache."""

    category: str
    question: str
    correct_answer: str
    saved_at: int
    incorrect_answers: list[str] = field(default_factory=list)
    options: list[str] = field(default_factory=list)
    difficulty: Optional[str] = None
    id: Optional[str] = None

    @property
    def key(self) -> str:
        return identity_key(self)

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {}
        if self.id is not None:
            payload["id"] = self.id
        payload["category"] = self.category
        if self.difficulty is not None:
            payload["difficulty"] = self.difficulty
        payload.update(
            {
                "question": self.question,
                "correct_answer": self.correct_answer,
                "incorrect_answers": list(self.incorrect_answers),
                "options": list(self.options),
                "savedAt": self.saved_at,
            }
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Optional["CachedAnswer"]:
        """Parse one stored element; ``None`` when it is not a valid record."""

        question = payload.get("question")
        if not isinstance(question, str):
            return None
        saved_at = payload.get("savedAt")
        if (
            isinstance(saved_at, bool)
            or not isinstance(saved_at, (int, float))
            or not math.isfinite(saved_at)
        ):
            saved_at = 0
        return cls(
            id=_optional_str(payload.get("id")),
            category=_str(payload.get("category")),
            difficulty=_optional_str(payload.get("difficulty")),
            question=question,
            correct_answer=_str(payload.get("correct_answer")),
            incorrect_answers=_str_list(payload.get("incorrect_answers")),
            options=_str_list(payload.get("options")),
            saved_at=int(saved_at),
        )


def hash_string(value: str) -> str:
    """32-bit DJB2 (xor variant) over UTF-16 code units, as lowercase hex."""

    h = 5381
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h * 33) ^ unit) & 0xFFFFFFFF
    return format(h, "x")


def identity_key(question: _Identifiable) -> str:
    """Return the dedup key: ``id:<id>`` or ``h:<hash>`` of the content."""

    stable_id = (question.id or "").strip()
    if stable_id:
        return f"id:{stable_id}"
    material = "{0}|{1}|{2}".format(
        question.category,
        question.difficulty or "",
        question.question,
    )
    return f"h:{hash_string(material)}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class AnswerCache:
    """Bounded, deduplicated, most-recent-first store of correct answers."""

    def __init__(
        self,
        storage: Optional[StoragePort],
        *,
        key: str = STORAGE_KEY,
        max_items: int = MAX_ITEMS,
        clock: Optional[Clock] = None,
    ) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self.storage = storage
        self.key = key
        self.max_items = max_items
        self._clock = clock or _now_ms

    def save(
        self,
        question: Question,
        options: Optional[Sequence[str]] = None,
    ) -> StorageResult:
        if options is None and isinstance(question, QuizQuestion):
            options = question.options
        record = self._normalize(question, options)
        record_key = identity_key(record)

        try:
            existing = self._read_records()
            deduped = [r for r in existing if identity_key(r) != record_key]
            merged = [record, *deduped][: self.max_items]
            self._port().set(
                self.key,
                json.dumps([r.to_dict() for r in merged], ensure_ascii=False),
            )
        except Exception as exc:  # noqa: BLE001 - any backend failure degrades
            return self._degraded("save", exc)

        logger.debug(
            "Saved correct answer",
            extra={
                "event": "cache_save",
                "key": record_key,
                "size": len(merged),
            },
        )
        return StorageResult.ok()

    def load_all(self) -> list[CachedAnswer]:
        try:
            return self._read_records()
        except Exception as exc:  # noqa: BLE001 - any backend failure degrades
            self._degraded("load", exc)
            return []

    def clear(self) -> StorageResult:
        try:
            self._port().remove(self.key)
        except Exception as exc:  # noqa: BLE001 - any backend failure degrades
            return self._degraded("clear", exc)
        logger.info("Cleared answer cache", extra={"event": "cache_clear"})
        return StorageResult.ok()

    def _port(self) -> StoragePort:
        if self.storage is None:
            raise StorageUnavailable("no storage configured")
        return self.storage

    def _read_records(self) -> list[CachedAnswer]:
        raw = self._port().get(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, RecursionError):
            logger.warning(
                "Answer cache holds invalid JSON; ignoring it",
                extra={"event": "cache_corrupt"},
            )
            return []
        if not isinstance(parsed, list):
            return []
        records = [
            record
            for record in (
                CachedAnswer.from_dict(item)
                for item in parsed
                if isinstance(item, Mapping)
            )
            if record is not None
        ]
        records.sort(key=lambda r: r.saved_at, reverse=True)
        return records[: self.max_items]

    def _normalize(
        self, question: Question, options: Optional[Sequence[str]]
    ) -> CachedAnswer:
        return CachedAnswer(
            id=question.id,
            category=question.category,
            difficulty=question.difficulty,
            question=question.question,
            correct_answer=question.correct_answer,
            incorrect_answers=_str_list(question.incorrect_answers),
            options=_str_list(options),
            saved_at=self._clock(),
        )

    def _degraded(self, action: str, exc: Exception) -> StorageResult:
        logger.warning(
            "Answer cache %s skipped: %s",
            action,
            exc,
            extra={"event": "cache_unavailable", "action": action},
        )
        return StorageResult.unavailable(str(exc))


def _str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _str(value)


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [_str(item) for item in value]
