"""CLI entry point for an interactive quiz run."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Mapping, Optional, Sequence

from rich.console import Console
from rich.text import Text

from math_quiz.core import config_templates
from math_quiz.core import workspace as workspace_mod
from math_quiz.core.config_templates import ConfigTemplateError
from math_quiz.core.logging import configure_logger
from math_quiz.core.workspace import WorkspaceError

from .config import (
    CONFIG_FILENAME,
    DEFAULT_PROBLEM_FILE,
    DEFAULT_TIME_LIMIT,
    MAX_TIME_LIMIT,
    ConfigOverrides,
    InvalidAnswerPolicy,
    QuizConfig,
    load_config,
)
from .errors import ExitCode, QuizConfigError, QuizError
from .loader import load_problems
from .models import ProblemSet, QuizResult, Scoreboard
from .runner import InputProvider, run_quiz
from .timer import RaceOutcome, run_with_deadline


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected a whole number of seconds, got '{value}'"
        ) from exc
    if number < 0:
        raise argparse.ArgumentTypeError("time limit cannot be negative")
    if number > MAX_TIME_LIMIT:
        raise argparse.ArgumentTypeError(
            f"time limit cannot exceed {MAX_TIME_LIMIT} seconds"
        )
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mathquiz run",
        description=(
            "Ask the questions from a CSV problem file one at a time and "
            "report the final score."
        ),
        epilog=(
            "Run `mathquiz config init` to scaffold the default quiz.toml "
            "template."
        ),
    )
    parser.add_argument(
        "--file",
        dest="file_path",
        type=Path,
        help=(
            "CSV file of question,answer rows "
            f"(defaults to {DEFAULT_PROBLEM_FILE})."
        ),
    )
    parser.add_argument(
        "--shuffle",
        dest="shuffle",
        action="store_true",
        help="Present the problems in a random order.",
    )
    parser.add_argument(
        "--no-shuffle",
        dest="shuffle",
        action="store_false",
        help="Keep the file order even if the config enables shuffling.",
    )
    parser.add_argument(
        "--time",
        dest="time_limit",
        type=_non_negative_int,
        help=(
            "Time limit for the whole quiz in seconds; 0 disables it "
            f"(defaults to {DEFAULT_TIME_LIMIT})."
        ),
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the shuffle for a repeatable order.",
    )
    parser.add_argument(
        "--on-invalid",
        choices=[policy.value for policy in InvalidAnswerPolicy],
        help="Abort the run or skip the question on a non-numeric answer.",
    )
    parser.add_argument(
        "--validate-answers",
        dest="validate_answers",
        action="store_true",
        help="Reject non-numeric answers in the file before starting.",
    )
    parser.add_argument(
        "--no-validate-answers",
        dest="validate_answers",
        action="store_false",
        help="Only check stored answers when their question is asked.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file (defaults to the workspace one).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and logs.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    parser.set_defaults(shuffle=None, validate_answers=None)
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    error_console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    overrides = ConfigOverrides(
        file_path=args.file_path,
        shuffle=args.shuffle,
        time_limit_seconds=args.time_limit,
        seed=args.seed,
        on_invalid=(
            InvalidAnswerPolicy.from_value(args.on_invalid)
            if args.on_invalid
            else None
        ),
        validate_answers=args.validate_answers,
        log_level=args.log_level,
    )

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            env=env,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))

    config = load_result.config
    logger, log_path = configure_logger(
        "math_quiz.quiz",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "quiz CLI invoked",
        extra={"config_path": load_result.config_path, "log_path": log_path},
    )

    out = console or Console()
    err = error_console or Console(stderr=True)
    reader = input_provider or out.input

    out.print(Text("Welcome to Math Quiz!", style="bold magenta"))
    try:
        problems = load_problems(config, console=out, logger=logger)
        outcome = _run(problems, config, out, reader, logger)
    except QuizError as exc:
        logger.error(
            "Quiz failed",
            extra={"error": type(exc).__name__, "detail": str(exc)},
        )
        err.print(Text(f"Error: {exc}", style="bold red"))
        return int(exc.exit_code)

    _print_summary(out, outcome.result)
    logger.info(
        "Quiz finished",
        extra={
            "outcome": outcome.result.outcome,
            "correct": outcome.result.correct,
            "total": outcome.result.total,
        },
    )
    return int(ExitCode.OK)


def _run(
    problems: ProblemSet,
    config: QuizConfig,
    console: Console,
    reader: InputProvider,
    logger: logging.Logger,
) -> RaceOutcome:
    scoreboard = Scoreboard(len(problems))

    def _task(cancel: threading.Event) -> QuizResult:
        return run_quiz(
            problems,
            console=console,
            input_provider=reader,
            scoreboard=scoreboard,
            policy=config.on_invalid,
            cancel_event=cancel,
            logger=logger,
        )

    if config.time_limit_seconds > 0:
        console.print(
            f"You have {config.time_limit_seconds} seconds to answer all "
            "the questions."
        )
    return run_with_deadline(
        _task,
        scoreboard=scoreboard,
        time_limit_seconds=config.time_limit_seconds,
        logger=logger,
    )


def _print_summary(console: Console, result: QuizResult) -> None:
    score = (
        f"You answered {result.correct} out of {result.total} "
        "questions correctly."
    )
    if result.timed_out:
        console.print()
        console.print(Text.assemble(("Time's up! ", "bold yellow"), score))
        console.print("Exiting the quiz.")
        return
    console.print(Text.assemble(("Quiz complete! ", "bold green"), score))


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)

    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return int(ExitCode.LOAD_FAILED)

    template = config_templates.get_template("quiz")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return int(ExitCode.LOAD_FAILED)

    sys.stdout.write(f"Wrote quiz config to {written}\n")
    return int(ExitCode.OK)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mathquiz config",
        description="Manage the quiz configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help=f"Write the default {CONFIG_FILENAME} template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination for the config TOML (defaults to the workspace).",
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root override used to resolve the default path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
