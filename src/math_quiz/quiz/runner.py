"""Sequential question loop: prompt, read, compare, tally."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.text import Text

from .config import InvalidAnswerPolicy
from .errors import InvalidAnswerFormat
from .models import Problem, QuizResult, Scoreboard, parse_whole_number

InputProvider = Callable[[], str]

_LOGGER = logging.getLogger("math_quiz.quiz")


def run_quiz(
    problems: Sequence[Problem],
    *,
    console: Console,
    input_provider: InputProvider,
    scoreboard: Optional[Scoreboard] = None,
    policy: InvalidAnswerPolicy = InvalidAnswerPolicy.ABORT,
    cancel_event: Optional[threading.Event] = None,
    logger: Optional[logging.Logger] = None,
) -> QuizResult:
    """Ask every problem in order and return the tally.

    Under :attr:`InvalidAnswerPolicy.ABORT` the first unparseable answer
    (typed or stored) raises :class:`InvalidAnswerFormat` and later problems
    are never shown. Under ``SKIP`` the problem counts as answered wrongly.
    Setting ``cancel_event`` stops the loop before the next prompt.
    """

    log = logger or _LOGGER
    board = scoreboard if scoreboard is not None else Scoreboard(len(problems))
    total = len(problems)

    for index, problem in enumerate(problems, start=1):
        if cancel_event is not None and cancel_event.is_set():
            log.info("Quiz cancelled", extra={"index": index})
            return board.snapshot("timed_out")

        _render_prompt(console, index, total, problem)
        try:
            correct = _check_answer(problem, _read_answer(input_provider))
        except InvalidAnswerFormat as exc:
            if policy is InvalidAnswerPolicy.ABORT:
                log.warning(
                    "Aborting on invalid answer",
                    extra={"index": index, "value": exc.value},
                )
                raise
            if not board.record(False):
                return board.snapshot("timed_out")
            console.print(Text(f"{exc}. Skipping question.", style="yellow"))
            log.info(
                "Skipped invalid answer",
                extra={"index": index, "value": exc.value},
            )
            continue

        if not board.record(correct):
            # Deadline already reported; stay quiet.
            return board.snapshot("timed_out")
        log.debug("Answered", extra={"index": index, "correct": correct})
        if correct:
            console.print(Text("Correct!", style="bold green"))
        else:
            console.print(
                Text.assemble(
                    ("Incorrect! ", "bold red"),
                    f"The correct answer is: {problem.answer}",
                )
            )

    return board.snapshot("completed")


def _render_prompt(
    console: Console, index: int, total: int, problem: Problem
) -> None:
    console.print(
        Text.assemble(
            (f"Question {index} of {total}: ", "bold cyan"),
            problem.question,
        )
    )


def _read_answer(input_provider: InputProvider) -> str:
    try:
        return input_provider()
    except EOFError as exc:
        raise InvalidAnswerFormat("") from exc


def _check_answer(problem: Problem, raw: str) -> bool:
    given = parse_whole_number(raw)
    if given is None:
        raise InvalidAnswerFormat(raw.strip())
    expected = parse_whole_number(problem.answer)
    if expected is None:
        raise InvalidAnswerFormat(problem.answer, source="answer")
    return given == expected
