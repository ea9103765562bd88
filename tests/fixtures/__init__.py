"""Shared testing helpers for the knowit test suite."""

from .quiz import FakeSource, make_question, make_quiz_question  # noqa: F401

__all__ = [
    "FakeSource",
    "make_question",
    "make_quiz_question",
]
