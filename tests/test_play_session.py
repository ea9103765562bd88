from __future__ import annotations

from typing import Iterable

from rich.console import Console

from fixtures import make_quiz_question
from knowit.cache import AnswerCache, MemoryStorage, StorageResult
from knowit.quiz import session as session_mod
from knowit.quiz.session import (
    QuizSessionState,
    SessionCommand,
    parse_session_command,
    run_quiz_session,
)


def _provider(commands: Iterable[str]):
    iterator = iter(commands)
    return lambda: next(iterator)


def _console() -> Console:
    return Console(record=True, width=100, color_system=None)


def _questions():
    return [
        make_quiz_question(
            "Capitale de la France ?",
            answer="Paris",
            options=("Lyon", "Paris", "Nice"),
            qid="q1",
        ),
        make_quiz_question(
            "Plus long fleuve de France ?",
            answer="La Loire",
            options=("La Seine", "Le Rhône", "La Loire"),
            qid="q2",
        ),
    ]


def test_parse_session_command():
    assert parse_session_command("") == SessionCommand("next")
    assert parse_session_command(" next ") == SessionCommand("next")
    assert parse_session_command("Q") == SessionCommand("quit")
    assert parse_session_command("exit") == SessionCommand("quit")
    assert parse_session_command("b") == SessionCommand("select", "B")
    assert parse_session_command("3") == SessionCommand("select", "C")
    assert parse_session_command("42") is None
    assert parse_session_command("maybe") is None
    assert parse_session_command(None) is None


def test_state_scores_first_answer_only():
    state = QuizSessionState(_questions())

    outcome = state.answer("Paris")
    assert outcome is not None and outcome.correct
    assert state.answer("Lyon") is None
    assert state.score == 1

    state.advance()
    assert state.index == 1 and not state.has_answered
    assert state.answer("Versailles") is None
    assert not state.answer("La Seine").correct
    state.advance()

    assert state.finished
    assert state.score == 1
    assert state.answer("La Loire") is None


def test_state_option_for_maps_letters():
    state = QuizSessionState(_questions())

    assert state.option_for("a") == "Lyon"
    assert state.option_for("C") == "Nice"
    assert state.option_for("D") is None
    assert state.option_for("") is None


def test_state_reset_clears_progress():
    state = QuizSessionState(_questions())
    state.answer("Paris")
    state.advance()

    state.reset(_questions()[:1])

    assert (state.index, state.score, state.finished) == (0, 0, False)
    assert state.total_questions == 1
    assert state.outcomes == []


def test_full_session_scores_and_saves_correct_answers():
    storage = MemoryStorage()
    cache = AnswerCache(storage, clock=lambda: 42)
    console = _console()

    result = run_quiz_session(
        _questions(),
        console,
        _provider(["", "B", "", "A", ""]),
        cache=cache,
    )

    assert result.exit_action == "finished"
    assert (result.score, result.total_questions) == (1, 2)
    assert result.answered_questions == 2
    [saved] = cache.load_all()
    assert saved.id == "q1"
    assert saved.options == ["Lyon", "Paris", "Nice"]

    output = console.export_text()
    assert "Question 1 / 2" in output
    assert "Pick an answer first." in output
    assert "Correct!" in output
    assert "Wrong. Answer: La Loire" in output
    assert "Press Enter to see your score." in output
    assert "Session complete" in output
    assert "1 / 2" in output
    assert "50%" in output


def test_session_quits_early():
    console = _console()

    result = run_quiz_session(_questions(), console, _provider(["B", "q"]))

    assert result.exit_action == "quit"
    assert result.score == 1
    assert result.answered_questions == 1
    assert "Ending session early." in console.export_text()
    assert "Session complete" not in console.export_text()


def test_session_handles_exhausted_input():
    console = _console()

    result = run_quiz_session(_questions(), console, _provider([]))

    assert result.exit_action == "quit"
    assert "Session interrupted." in console.export_text()


def test_invalid_and_repeated_choices_are_reported():
    console = _console()

    run_quiz_session(
        _questions()[:1], console, _provider(["zz", "E", "A", "B", ""])
    )

    output = console.export_text()
    assert "Unrecognized command. Try again." in output
    assert "'E' is not a valid choice for this question." in output
    assert "Already answered." in output


def test_empty_session_returns_empty_action():
    console = _console()

    result = run_quiz_session([], console, _provider([]))

    assert result.exit_action == "empty"
    assert "No questions to play." in console.export_text()


class _UnavailableCache:
    def save(self, question, options=None):
        return StorageResult.unavailable("quota exceeded")


def test_storage_failure_prints_notice_and_play_continues():
    console = _console()

    result = run_quiz_session(
        _questions()[:1],
        console,
        _provider(["B", ""]),
        cache=_UnavailableCache(),
    )

    assert result.exit_action == "finished"
    assert result.score == 1
    assert "Could not save this answer for review (quota exceeded)." in (
        console.export_text()
    )


def test_category_label_is_rendered():
    console = _console()

    session_mod._render_question(console, QuizSessionState(_questions()))

    assert "Géographie" in console.export_text()


def test_options_beyond_key_range_are_logged(caplog):
    options = tuple(f"Option {i}" for i in range(12))
    question = make_quiz_question(answer="Option 0", options=options, qid="wide")
    console = _console()

    with caplog.at_level("WARNING", logger="knowit.quiz.session"):
        session_mod._render_question(console, QuizSessionState([question]))

    output = console.export_text()
    assert "Option 9" in output
    assert "Option 10" not in output
    [record] = [
        r for r in caplog.records if getattr(r, "event", None) == "options_truncated"
    ]
    assert record.question_id == "wide"
