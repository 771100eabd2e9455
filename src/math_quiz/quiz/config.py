"""Configuration loader for a quiz run."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from math_quiz.core import config as core_config
from math_quiz.core import workspace as workspace_mod

from .errors import QuizConfigError

CONFIG_FILENAME = "quiz.toml"
CONFIG_ENV = "MATH_QUIZ_CONFIG"
ENV_PREFIX = "MATH_QUIZ_"

DEFAULT_PROBLEM_FILE = Path("./assets/default-questions.csv")
DEFAULT_TIME_LIMIT = 30
# Longest wait a threading primitive accepts on this platform.
MAX_TIME_LIMIT = int(threading.TIMEOUT_MAX)
_DEFAULT_LOG_LEVEL = "INFO"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class InvalidAnswerPolicy(Enum):
    """What the runner does with an answer that is not a whole number."""

    ABORT = "abort"
    SKIP = "skip"

    @classmethod
    def from_value(cls, value: str) -> "InvalidAnswerPolicy":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise QuizConfigError(
            f"Unknown invalid-answer policy '{value}'. "
            f"Expected one of: {expected}."
        )


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved configuration for one quiz run.

    ``time_limit_seconds`` is a single deadline for the whole run, not a
    per-question allowance; ``0`` disables it.
    """

    file_path: Path = DEFAULT_PROBLEM_FILE
    shuffle: bool = False
    time_limit_seconds: int = DEFAULT_TIME_LIMIT
    seed: Optional[int] = None
    on_invalid: InvalidAnswerPolicy = InvalidAnswerPolicy.ABORT
    validate_answers: bool = True
    log_level: str = _DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    file_path: Optional[Path] = None
    shuffle: Optional[bool] = None
    time_limit_seconds: Optional[int] = None
    seed: Optional[int] = None
    on_invalid: Optional[InvalidAnswerPolicy] = None
    validate_answers: Optional[bool] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            table = core_config.layer_onto_defaults(
                table, core_config.load_toml(requested_path)
            )
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    elif config_path is not None or (env_map.get(CONFIG_ENV) or "").strip():
        raise QuizConfigError(f"Config file not found: {requested_path}")

    problems = table["problems"]
    quiz = table["quiz"]

    file_value = _pick_first(
        overrides.file_path,
        _parse_env_string(env_map, "FILE"),
        problems["file"],
    )
    shuffle = _pick_first(
        overrides.shuffle,
        _parse_env_bool(env_map, "SHUFFLE"),
        problems["shuffle"],
    )
    time_limit = _pick_first(
        overrides.time_limit_seconds,
        _parse_env_int(env_map, "TIME"),
        quiz["time_limit"],
    )
    seed = _pick_first(
        overrides.seed,
        _parse_env_int(env_map, "SEED"),
        problems["seed"],
    )
    on_invalid = _pick_first(
        overrides.on_invalid,
        _parse_env_string(env_map, "ON_INVALID"),
        quiz["on_invalid"],
    )
    validate_answers = _pick_first(
        overrides.validate_answers,
        _parse_env_bool(env_map, "VALIDATE_ANSWERS"),
        problems["validate_answers"],
    )
    log_level = _pick_first(
        overrides.log_level,
        _parse_env_string(env_map, "LOG_LEVEL"),
        table["logging"]["level"],
    )

    config = QuizConfig(
        file_path=_coerce_path(file_value),
        shuffle=_coerce_bool(shuffle, "problems.shuffle"),
        time_limit_seconds=_coerce_time_limit(time_limit),
        seed=_coerce_seed(seed),
        on_invalid=_coerce_policy(on_invalid),
        validate_answers=_coerce_bool(
            validate_answers, "problems.validate_answers"
        ),
        log_level=_coerce_log_level(log_level),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "problems": {
            "file": str(DEFAULT_PROBLEM_FILE),
            "shuffle": False,
            "seed": None,
            "validate_answers": True,
        },
        "quiz": {
            "time_limit": DEFAULT_TIME_LIMIT,
            "on_invalid": InvalidAnswerPolicy.ABORT.value,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _coerce_path(value: object) -> Path:
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    raise QuizConfigError("problems.file must be a non-empty string.")


def _coerce_bool(value: object, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise QuizConfigError(f"{key} must be true or false.")


def _coerce_time_limit(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizConfigError("quiz.time_limit must be an integer.")
    if value < 0:
        raise QuizConfigError(
            "quiz.time_limit must be zero (no limit) or a positive number "
            "of seconds."
        )
    if value > MAX_TIME_LIMIT:
        raise QuizConfigError(
            f"quiz.time_limit cannot exceed {MAX_TIME_LIMIT} seconds."
        )
    return value


def _coerce_seed(value: object) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizConfigError("problems.seed must be an integer.")
    return value


def _coerce_policy(value: object) -> InvalidAnswerPolicy:
    if isinstance(value, InvalidAnswerPolicy):
        return value
    if isinstance(value, str):
        return InvalidAnswerPolicy.from_value(value)
    raise QuizConfigError("quiz.on_invalid must be 'abort' or 'skip'.")


def _coerce_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError("logging.level must be a non-empty string.")
    return value.strip().upper()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise QuizConfigError(
        f"{ENV_PREFIX}{key} must be a boolean (true/false), got '{raw}'."
    )


def _parse_env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got '{raw}'."
        ) from exc


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
