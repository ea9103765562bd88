from .builder import (
    SessionBuilder,
    SessionLoadError,
    build_random_tuples,
    build_session,
    prepare_question,
    shuffle,
)
from ..models import Question, QuizQuestion, SamplingTuple
from .source import (
    QuizApiSource,
    QuizSource,
    SourceResult,
    clamp_limit,
    parse_upstream_payload,
)
from .session import (
    AnswerOutcome,
    QuizSessionResult,
    QuizSessionState,
    run_quiz_session,
)

__all__ = [
    "SessionBuilder",
    "SessionLoadError",
    "build_random_tuples",
    "build_session",
    "prepare_question",
    "shuffle",
    "Question",
    "QuizQuestion",
    "SamplingTuple",
    "QuizApiSource",
    "QuizSource",
    "SourceResult",
    "clamp_limit",
    "parse_upstream_payload",
    "AnswerOutcome",
    "QuizSessionResult",
    "QuizSessionState",
    "run_quiz_session",
]
