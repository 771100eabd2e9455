"""Shared testing fixtures for the math_quiz test suite."""

from .workspace import (  # noqa: F401
    WorkspaceBuilder,
    make_provider,
    recording_console,
)

__all__ = [
    "WorkspaceBuilder",
    "make_provider",
    "recording_console",
]
