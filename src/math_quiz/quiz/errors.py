"""Exceptions raised by the quiz pipeline and the exit codes they map to."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Sequence


class ExitCode(IntEnum):
    """Process exit status returned by ``mathquiz run``."""

    OK = 0
    LOAD_FAILED = 1
    USAGE = 2
    PARSE_FAILED = 3
    ANSWER_FAILED = 4


class QuizError(RuntimeError):
    """Base class for every error raised by the quiz pipeline."""

    exit_code = ExitCode.USAGE


class QuizConfigError(QuizError):
    """Raised when configuration parsing or validation fails."""


class ProblemFileError(QuizError):
    """The problem file could not be opened or read."""

    exit_code = ExitCode.LOAD_FAILED

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not open problem file {path}: {reason}")
        self.path = path


class ProblemParseError(QuizError):
    """The problem file is not well-formed CSV."""

    exit_code = ExitCode.PARSE_FAILED

    def __init__(self, path: Path, line: int, reason: str) -> None:
        super().__init__(
            f"Malformed CSV in {path} at line {line}: {reason}"
        )
        self.path = path
        self.line = line


class ProblemFormatError(QuizError):
    """A CSV row does not describe a usable question/answer pair."""

    exit_code = ExitCode.PARSE_FAILED

    def __init__(self, row: int, fields: Sequence[str], reason: str) -> None:
        super().__init__(
            f"Invalid problem on row {row} {list(fields)!r}: {reason}"
        )
        self.row = row
        self.fields = tuple(fields)


class InvalidAnswerFormat(QuizError):
    """An answer, typed or stored, is not an integer."""

    exit_code = ExitCode.ANSWER_FAILED

    def __init__(self, value: str, *, source: str = "input") -> None:
        label = "stored answer" if source == "answer" else "answer"
        super().__init__(
            f"Expected a whole number for the {label}, got {value!r}"
        )
        self.value = value
        self.source = source
