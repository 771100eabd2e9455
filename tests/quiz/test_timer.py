from __future__ import annotations

import threading

import pytest

from fixtures import make_provider, recording_console
from math_quiz.quiz.errors import InvalidAnswerFormat
from math_quiz.quiz.models import Problem, QuizResult, Scoreboard
from math_quiz.quiz.runner import run_quiz
from math_quiz.quiz.timer import run_with_deadline


def _problems(count: int) -> tuple[Problem, ...]:
    return tuple(
        Problem(question=f"{n}+1", answer=str(n + 1), row=n + 1)
        for n in range(count)
    )


def test_no_limit_runs_inline_to_completion():
    board = Scoreboard(5)
    caller = threading.current_thread()
    seen: list[threading.Thread] = []

    def task(cancel: threading.Event) -> QuizResult:
        seen.append(threading.current_thread())
        return run_quiz(
            _problems(5),
            console=recording_console(),
            input_provider=make_provider([str(n + 1) for n in range(5)]),
            scoreboard=board,
            cancel_event=cancel,
        )

    outcome = run_with_deadline(task, scoreboard=board, time_limit_seconds=0)

    assert not outcome.timed_out
    assert (outcome.result.correct, outcome.result.total) == (5, 5)
    assert seen == [caller]


def test_worker_finishing_first_wins_the_race():
    board = Scoreboard(2)

    def task(cancel: threading.Event) -> QuizResult:
        return run_quiz(
            _problems(2),
            console=recording_console(),
            input_provider=make_provider(["1", "3"]),
            scoreboard=board,
            cancel_event=cancel,
        )

    outcome = run_with_deadline(task, scoreboard=board, time_limit_seconds=5)

    assert not outcome.timed_out
    assert outcome.result.correct == 1
    assert outcome.result.outcome == "completed"


def test_deadline_reports_partial_score_and_abandons_worker():
    board = Scoreboard(3)
    stalled = threading.Event()
    console = recording_console()

    def task(cancel: threading.Event) -> QuizResult:
        return run_quiz(
            _problems(3),
            console=console,
            input_provider=make_provider(["1"], block=stalled),
            scoreboard=board,
            cancel_event=cancel,
        )

    try:
        outcome = run_with_deadline(
            task, scoreboard=board, time_limit_seconds=0.2
        )
    finally:
        stalled.set()

    assert outcome.timed_out
    assert outcome.result.outcome == "timed_out"
    assert outcome.result.correct == 1
    assert outcome.result.correct <= outcome.result.total
    assert board.closed


def test_late_worker_cannot_change_reported_score():
    board = Scoreboard(2)
    release = threading.Event()
    finished = threading.Event()

    def task(cancel: threading.Event) -> QuizResult:
        release.wait(5)
        board.record(True)
        board.record(True)
        finished.set()
        return board.snapshot()

    outcome = run_with_deadline(
        task, scoreboard=board, time_limit_seconds=0.1
    )
    release.set()
    finished.wait(5)

    assert outcome.timed_out
    assert outcome.result.correct == 0
    assert board.snapshot().correct == 0


def test_worker_error_is_reraised_in_caller():
    board = Scoreboard(1)

    def task(cancel: threading.Event) -> QuizResult:
        return run_quiz(
            _problems(1),
            console=recording_console(),
            input_provider=make_provider(["one"]),
            scoreboard=board,
            cancel_event=cancel,
        )

    with pytest.raises(InvalidAnswerFormat):
        run_with_deadline(task, scoreboard=board, time_limit_seconds=5)


def test_limit_beyond_platform_maximum_is_clamped():
    board = Scoreboard(1)

    def task(cancel: threading.Event) -> QuizResult:
        return run_quiz(
            _problems(1),
            console=recording_console(),
            input_provider=make_provider(["1"]),
            scoreboard=board,
            cancel_event=cancel,
        )

    outcome = run_with_deadline(
        task,
        scoreboard=board,
        time_limit_seconds=threading.TIMEOUT_MAX * 10,
    )

    assert not outcome.timed_out
    assert outcome.result.correct == 1
