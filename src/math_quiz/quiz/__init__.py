from .config import (
    ConfigOverrides,
    InvalidAnswerPolicy,
    QuizConfig,
    load_config,
)
from .errors import (
    ExitCode,
    InvalidAnswerFormat,
    ProblemFileError,
    ProblemFormatError,
    ProblemParseError,
    QuizConfigError,
    QuizError,
)
from .loader import load_problems
from .models import Problem, ProblemSet, QuizResult, Scoreboard
from .runner import run_quiz
from .timer import RaceOutcome, run_with_deadline

__all__ = [
    "ConfigOverrides",
    "InvalidAnswerPolicy",
    "QuizConfig",
    "load_config",
    "ExitCode",
    "InvalidAnswerFormat",
    "ProblemFileError",
    "ProblemFormatError",
    "ProblemParseError",
    "QuizConfigError",
    "QuizError",
    "load_problems",
    "Problem",
    "ProblemSet",
    "QuizResult",
    "Scoreboard",
    "run_quiz",
    "RaceOutcome",
    "run_with_deadline",
]
