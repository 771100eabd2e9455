"""Race a quiz run against a single whole-run deadline."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .models import QuizResult, Scoreboard

QuizTask = Callable[[threading.Event], QuizResult]

_LOGGER = logging.getLogger("math_quiz.quiz")


@dataclass(frozen=True)
class RaceOutcome:
    """Which side of the race finished first and the score to report."""

    result: QuizResult
    timed_out: bool


class _WorkerState:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Optional[QuizResult] = None
        self.error: Optional[BaseException] = None


def run_with_deadline(
    task: QuizTask,
    *,
    scoreboard: Scoreboard,
    time_limit_seconds: float,
    logger: Optional[logging.Logger] = None,
) -> RaceOutcome:
    """Run ``task`` and stop waiting for it once the deadline passes.

    With no limit the task runs inline on the calling thread. Otherwise it
    runs on a daemon thread while the caller waits for either completion or
    the deadline. On expiry the scoreboard is closed and its frozen snapshot
    is reported; the worker, usually blocked on input, is left to die with
    the process. Exceptions raised by a worker that finished in time are
    re-raised here.
    """

    log = logger or _LOGGER
    cancel = threading.Event()

    if time_limit_seconds <= 0:
        return RaceOutcome(result=task(cancel), timed_out=False)

    state = _WorkerState()

    def _worker() -> None:
        try:
            state.result = task(cancel)
        except BaseException as exc:  # re-raised on the waiting thread
            state.error = exc
        finally:
            state.done.set()

    worker = threading.Thread(target=_worker, name="quiz-runner", daemon=True)
    log.info("Deadline started", extra={"seconds": time_limit_seconds})
    worker.start()

    wait_for = min(time_limit_seconds, threading.TIMEOUT_MAX)
    if state.done.wait(timeout=wait_for):
        if state.error is not None:
            raise state.error
        assert state.result is not None
        return RaceOutcome(result=state.result, timed_out=False)

    cancel.set()
    result = scoreboard.close("timed_out")
    log.info(
        "Deadline expired",
        extra={"correct": result.correct, "answered": result.answered},
    )
    return RaceOutcome(result=result, timed_out=True)
