"""Question records shared by the source adapter, builder and cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Optional

__all__ = [
    "Question",
    "QuizQuestion",
    "SamplingTuple",
]


@dataclass(frozen=True)
class Question:
    """Canonical trivia question as served by the proxy."""

    category: str
    question: str
    correct_answer: str
    incorrect_answers: tuple[str, ...] = ()
    difficulty: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "difficulty": self.difficulty,
            "question": self.question,
            "correct_answer": self.correct_answer,
            "incorrect_answers": list(self.incorrect_answers),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        return cls(
            id=_optional_str(payload.get("id")),
            category=_str(payload.get("category")),
            difficulty=_optional_str(payload.get("difficulty")),
            question=_str(payload.get("question")),
            correct_answer=_str(payload.get("correct_answer")),
            incorrect_answers=_str_tuple(payload.get("incorrect_answers")),
        )


@dataclass(frozen=True)
class QuizQuestion(Question):
    """A question prepared for display with its shuffled option set."""

    options: tuple[str, ...] = field(default=())

    def to_dict(self) -> MutableMapping[str, Any]:
        payload = super().to_dict()
        payload["options"] = list(self.options)
        return payload

    def is_correct(self, option: str) -> bool:
        return option == self.correct_answer


@dataclass(frozen=True)
class SamplingTuple:
    """Category/difficulty pair parameterizing one upstream request."""

    category: str
    difficulty: str


def _str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _str(value)


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(_str(item) for item in value)
