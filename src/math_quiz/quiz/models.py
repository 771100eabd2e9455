"""Value types shared by the loader, runner and deadline coordinator."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Literal, Optional

Outcome = Literal["completed", "timed_out"]

_WHOLE_NUMBER = re.compile(r"[+-]?[0-9]+")


def parse_whole_number(text: str) -> Optional[int]:
    """Return ``text`` as an int, or ``None`` if it is not a plain integer.

    Only an optional sign and ASCII digits are accepted; surrounding
    whitespace is ignored. ``int()`` alone would also take ``1_000`` and
    non-ASCII digits.
    """

    candidate = text.strip()
    if not _WHOLE_NUMBER.fullmatch(candidate):
        return None
    return int(candidate)


@dataclass(frozen=True)
class Problem:
    """One question and its expected answer, both already trimmed."""

    question: str
    answer: str
    row: int = 0


ProblemSet = tuple[Problem, ...]


@dataclass(frozen=True)
class QuizResult:
    """Final or best-effort tally for a quiz run."""

    correct: int
    total: int
    answered: int = 0
    outcome: Outcome = "completed"

    @property
    def timed_out(self) -> bool:
        return self.outcome == "timed_out"


class Scoreboard:
    """Thread-safe running tally written by the runner.

    Once :meth:`close` is called the tally is frozen: later writes from an
    abandoned worker are dropped, so the snapshot handed back on timeout is
    exactly what gets reported.
    """

    def __init__(self, total: int) -> None:
        self._lock = threading.Lock()
        self._total = total
        self._correct = 0
        self._answered = 0
        self._closed = False

    def record(self, correct: bool) -> bool:
        """Record one answered problem; return ``False`` once closed."""

        with self._lock:
            if self._closed:
                return False
            self._answered += 1
            if correct:
                self._correct += 1
            return True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def snapshot(self, outcome: Outcome = "completed") -> QuizResult:
        with self._lock:
            return self._result(outcome)

    def close(self, outcome: Outcome) -> QuizResult:
        """Freeze the tally and return it."""

        with self._lock:
            self._closed = True
            return self._result(outcome)

    def _result(self, outcome: Outcome) -> QuizResult:
        return QuizResult(
            correct=self._correct,
            total=self._total,
            answered=self._answered,
            outcome=outcome,
        )
