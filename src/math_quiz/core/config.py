"""TOML helpers behind ``quiz.toml``: read, layer over defaults, scaffold."""

from __future__ import annotations

import copy
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "layer_onto_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """Raised when a TOML file cannot be read, parsed or applied."""


def load_toml(path: Path) -> Dict[str, Any]:
    """Parse the TOML document at ``path`` into plain dicts."""

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise TomlConfigError(
            f"Could not read config {path}: {reason}"
        ) from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise TomlConfigError(f"Config {path} is not valid UTF-8.") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Invalid TOML in {path}: {exc}") from exc


def layer_onto_defaults(
    defaults: Mapping[str, Any], loaded: Mapping[str, Any]
) -> Dict[str, Any]:
    """Return a copy of ``defaults`` with the values from ``loaded`` applied.

    Tables in ``defaults`` fix the allowed shape: every key found in
    ``loaded`` must already exist there, and a table may only be replaced by
    a table. All unknown keys are reported together.
    """

    merged = copy.deepcopy(dict(defaults))
    unknown: List[str] = []
    _layer(merged, loaded, prefix="", unknown=unknown)
    if unknown:
        label = "key" if len(unknown) == 1 else "keys"
        listed = ", ".join(f"'{key}'" for key in unknown)
        raise TomlConfigError(f"Unknown configuration {label}: {listed}.")
    return merged


def _layer(
    target: Dict[str, Any],
    source: Mapping[str, Any],
    *,
    prefix: str,
    unknown: List[str],
) -> None:
    for key, value in source.items():
        dotted = prefix + key
        if key not in target:
            unknown.append(dotted)
            continue
        if isinstance(target[key], dict):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"'{dotted}' must be a table, not "
                    f"{type(value).__name__}."
                )
            _layer(target[key], value, prefix=f"{dotted}.", unknown=unknown)
        else:
            target[key] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
) -> Path:
    """Write ``template`` to ``path`` in one step.

    The text goes to a sibling temp file that then replaces ``path``, so an
    interrupted write never leaves a truncated config behind.
    """

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    )
    try:
        with handle:
            handle.write(template)
        os.replace(handle.name, path)
    except OSError as exc:
        Path(handle.name).unlink(missing_ok=True)
        raise TomlConfigError(
            f"Could not write config {path}: {exc}"
        ) from exc
    return path
