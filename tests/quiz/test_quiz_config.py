from __future__ import annotations

from pathlib import Path

import pytest

from math_quiz.quiz import config as cfg
from math_quiz.quiz.errors import QuizConfigError


def _write_config(root: Path, body: str) -> Path:
    config_dir = root / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / cfg.CONFIG_FILENAME
    path.write_text(body.strip() + "\n", encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    result = cfg.load_config(env={}, workspace_path=tmp_path / "ws")

    assert result.config_path is None
    assert result.config == cfg.QuizConfig()
    assert result.config.file_path == Path("assets/default-questions.csv")
    assert result.config.time_limit_seconds == 30
    assert result.config.on_invalid is cfg.InvalidAnswerPolicy.ABORT
    assert result.layout.path_for("logs").is_dir()


def test_workspace_config_file_is_read(tmp_path):
    root = tmp_path / "ws"
    path = _write_config(
        root,
        """
        [problems]
        file = "bank.csv"
        shuffle = true
        seed = 9
        validate_answers = false

        [quiz]
        time_limit = 0
        on_invalid = "SKIP"

        [logging]
        level = "debug"
        """,
    )

    result = cfg.load_config(env={}, workspace_path=root)

    assert result.config_path == path
    assert result.config == cfg.QuizConfig(
        file_path=Path("bank.csv"),
        shuffle=True,
        time_limit_seconds=0,
        seed=9,
        on_invalid=cfg.InvalidAnswerPolicy.SKIP,
        validate_answers=False,
        log_level="DEBUG",
    )


def test_env_overrides_file_and_cli_overrides_env(tmp_path):
    root = tmp_path / "ws"
    _write_config(root, "[quiz]\ntime_limit = 10\n")
    env = {"MATH_QUIZ_TIME": "20", "MATH_QUIZ_SHUFFLE": "yes"}

    from_env = cfg.load_config(env=env, workspace_path=root)
    from_cli = cfg.load_config(
        env=env,
        workspace_path=root,
        overrides=cfg.ConfigOverrides(time_limit_seconds=5, shuffle=False),
    )

    assert from_env.config.time_limit_seconds == 20
    assert from_env.config.shuffle is True
    assert from_cli.config.time_limit_seconds == 5
    assert from_cli.config.shuffle is False


def test_explicit_missing_config_is_an_error(tmp_path):
    with pytest.raises(QuizConfigError, match="not found"):
        cfg.load_config(
            config_path=tmp_path / "missing.toml",
            env={},
            workspace_path=tmp_path / "ws",
        )


def test_env_config_path_is_used(tmp_path):
    path = tmp_path / "elsewhere.toml"
    path.write_text('[problems]\nfile = "x.csv"\n', encoding="utf-8")

    result = cfg.load_config(
        env={cfg.CONFIG_ENV: str(path)}, workspace_path=tmp_path / "ws"
    )

    assert result.config.file_path == Path("x.csv")


@pytest.mark.parametrize(
    "body, message",
    [
        ("[quiz]\ntime_limit = -1\n", "time_limit"),
        ("[quiz]\ntime_limit = 99999999999\n", "cannot exceed"),
        ('[quiz]\ntime_limit = "soon"\n', "time_limit"),
        ('[quiz]\non_invalid = "retry"\n', "invalid-answer policy"),
        ('[problems]\nshuffle = "maybe"\n', "problems.shuffle"),
        ("[problems]\nseed = 1.5\n", "problems.seed"),
        ("[quiz]\nper_question = true\n", "Unknown configuration key"),
    ],
)
def test_invalid_config_values(tmp_path, body, message):
    root = tmp_path / "ws"
    _write_config(root, body)

    with pytest.raises(QuizConfigError, match=message):
        cfg.load_config(env={}, workspace_path=root)


@pytest.mark.parametrize(
    "env",
    [
        {"MATH_QUIZ_TIME": "ten"},
        {"MATH_QUIZ_TIME": "99999999999"},
        {"MATH_QUIZ_SHUFFLE": "perhaps"},
    ],
)
def test_invalid_env_values(tmp_path, env):
    with pytest.raises(QuizConfigError):
        cfg.load_config(env=env, workspace_path=tmp_path / "ws")
