"""Unified CLI entry point for math-quiz."""

from __future__ import annotations

import inspect
import logging
import os
import sys
import threading
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence


CommandHandler = Callable[[Sequence[str]], int]

DEFAULT_COMMAND = "run"


@dataclass(frozen=True)
class CommandSpec:
    """Represents a mathquiz subcommand."""

    name: str
    summary: str
    handler: CommandHandler


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="run",
        summary="Take the quiz (default when no command is given).",
        handler=lambda argv: _run_module_command(
            "math_quiz.quiz.cli",
            "main",
            "mathquiz run",
            argv,
        ),
    ),
    CommandSpec(
        name="init",
        summary="Bootstrap the math-quiz workspace (config and logs).",
        handler=lambda argv: _run_module_command(
            "math_quiz.workspace.cli",
            "main",
            "mathquiz init",
            argv,
        ),
    ),
    CommandSpec(
        name="config",
        summary="Write the default quiz.toml configuration template.",
        handler=lambda argv: _run_module_command(
            "math_quiz.quiz.cli",
            "main",
            "mathquiz config",
            ["config", *argv],
        ),
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    lines = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}")
    return "\n".join(lines)


def format_usage() -> str:
    parts = [
        "Usage: mathquiz [command] [args...]",
        "Run `mathquiz list` for commands or `mathquiz help <name>` for "
        "details.",
        "",
        format_command_table(),
    ]
    return "\n".join(parts)


def _print(
    text: str, *, stream: Optional[Callable[[str], None]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _handle_version() -> int:
    try:
        version = metadata.version("math-quiz")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0

    spec = COMMANDS.get(argv[0])
    if not spec:
        _print(f"Unknown command '{argv[0]}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2

    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `mathquiz {spec.name} --help` for command options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])

    # Bare `mathquiz` and `mathquiz --file ...` both start a quiz.
    if not args or (
        args[0].startswith("-")
        and args[0] not in ("-h", "--help", "-V", "--version")
    ):
        args = [DEFAULT_COMMAND, *args]

    head, *tail = args

    if head in ("-h", "--help"):
        _print(format_usage())
        return 0

    if head in ("-V", "--version", "version"):
        return _handle_version()

    if head == "list":
        _print(format_command_table())
        return 0

    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec:
        return spec.handler(tail)

    _print(f"Unknown command '{head}'.", stream=sys.stderr.write)
    _print(format_command_table(), stream=sys.stderr.write)
    return 2


def entrypoint() -> None:
    """Console-script entry that never joins an abandoned quiz worker.

    After a deadline the worker thread may still be blocked reading stdin;
    a normal interpreter shutdown would then fight it for the stdin lock.
    """

    code = main()
    if any(
        thread.daemon and thread.is_alive()
        for thread in threading.enumerate()
    ):
        sys.stdout.flush()
        sys.stderr.flush()
        logging.shutdown()
        os._exit(code)
    raise SystemExit(code)


def _run_module_command(
    module_name: str,
    func_name: str,
    prog_name: str,
    argv: Sequence[str],
) -> int:
    module = import_module(module_name)
    target = getattr(module, func_name)
    return _invoke_main(target, prog_name, argv)


def _invoke_main(
    func: Callable[..., object], prog_name: str, argv: Sequence[str]
) -> int:
    accepts_argv = _accepts_positional(func)
    args = list(argv)
    old_argv = sys.argv
    sys.argv = [prog_name, *args]
    try:
        result = func(args) if accepts_argv else func()
    except SystemExit as exc:
        return _normalize_system_exit(exc)
    finally:
        sys.argv = old_argv

    if isinstance(result, int):
        return result
    return 0


def _accepts_positional(func: Callable[..., object]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    return any(
        param.kind
        in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        )
        for param in signature.parameters.values()
    )


def _normalize_system_exit(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _print(str(code), stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    entrypoint()
