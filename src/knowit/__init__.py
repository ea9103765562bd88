"""Trivia quiz sessions with a local cache of correctly answered questions."""

from .models import Question, QuizQuestion, SamplingTuple

__all__ = ["Question", "QuizQuestion", "SamplingTuple"]
