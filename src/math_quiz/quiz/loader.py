"""Load question/answer pairs from a CSV problem file."""

from __future__ import annotations

import csv
import logging
import random
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO

from rich.console import Console

from .config import QuizConfig
from .errors import ProblemFileError, ProblemFormatError, ProblemParseError
from .models import Problem, ProblemSet, parse_whole_number

_LOGGER = logging.getLogger("math_quiz.quiz")


def load_problems(
    config: QuizConfig,
    *,
    rng: Optional[random.Random] = None,
    console: Optional[Console] = None,
    logger: Optional[logging.Logger] = None,
) -> ProblemSet:
    """Read ``config.file_path`` into an ordered :data:`ProblemSet`.

    The load is all-or-nothing: the first bad row raises and no problems are
    returned. When ``config.shuffle`` is set the rows are permuted once with
    ``rng`` (or a generator seeded from ``config.seed``).
    """

    log = logger or _LOGGER
    path = Path(config.file_path)
    if console is not None:
        console.print(f"Loading questions from: {path}")
    log.info("Loading problems", extra={"path": path})

    rows = _read_rows(path)
    problems = _build_problems(rows, validate_answers=config.validate_answers)

    if config.shuffle:
        generator = rng if rng is not None else random.Random(config.seed)
        generator.shuffle(problems)

    log.info(
        "Loaded problems",
        extra={
            "path": path,
            "count": len(problems),
            "shuffled": config.shuffle,
        },
    )
    return tuple(problems)


def _read_rows(path: Path) -> List[tuple[int, List[str]]]:
    try:
        handle = path.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise ProblemFileError(path, exc.strerror or str(exc)) from exc

    rows: List[tuple[int, List[str]]] = []
    with handle:
        reader = csv.reader(_checked_lines(handle, path), strict=True)
        try:
            for row in reader:
                if not row:
                    continue
                rows.append((reader.line_num, row))
        except csv.Error as exc:
            raise ProblemParseError(path, reader.line_num, str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise ProblemParseError(
                path, reader.line_num + 1, "file is not valid UTF-8"
            ) from exc
        except OSError as exc:
            raise ProblemFileError(path, exc.strerror or str(exc)) from exc
    return rows


def _checked_lines(handle: TextIO, path: Path) -> Iterator[str]:
    """Yield raw lines, rejecting quotes inside unquoted fields.

    ``csv`` keeps such quotes as literal text even in strict mode.
    """

    quoted = False
    for number, line in enumerate(handle, start=1):
        quoted, column = _scan_quotes(line, quoted)
        if column is not None:
            raise ProblemParseError(
                path, number, f'bare " in non-quoted field (column {column})'
            )
        yield line


def _scan_quotes(line: str, quoted: bool) -> tuple[bool, Optional[int]]:
    """Return the quoting state after ``line`` and any bare quote column.

    ``quoted`` carries an open quoted field over from the previous line.
    """

    field_start = not quoted
    index = 0
    while index < len(line):
        char = line[index]
        if quoted:
            if char == '"':
                if line[index + 1 : index + 2] == '"':
                    index += 2
                    continue
                quoted = False
        elif char == '"':
            if not field_start:
                return quoted, index + 1
            quoted = True
            field_start = False
        else:
            field_start = char in ",\r\n"
        index += 1
    return quoted, None


def _build_problems(
    rows: Iterable[tuple[int, Sequence[str]]], *, validate_answers: bool
) -> List[Problem]:
    problems: List[Problem] = []
    for line, fields in rows:
        if len(fields) < 2:
            raise ProblemFormatError(
                line, fields, "expected at least 2 fields (question,answer)"
            )
        question = fields[0].strip()
        answer = fields[1].strip()
        if validate_answers and parse_whole_number(answer) is None:
            raise ProblemFormatError(
                line, fields, "answer is not a whole number"
            )
        problems.append(Problem(question=question, answer=answer, row=line))
    return problems
