from __future__ import annotations

import random

import pytest

from fixtures import recording_console
from math_quiz.quiz.config import QuizConfig
from math_quiz.quiz.errors import (
    ExitCode,
    ProblemFileError,
    ProblemFormatError,
    ProblemParseError,
)
from math_quiz.quiz.loader import load_problems
from math_quiz.quiz.models import Problem


ROWS = ["5+5,10", "7+3,10", "1+1,2", "8+3,11", "3*4,12"]


def test_load_keeps_file_order(workspace):
    path = workspace.problems(ROWS)

    problems = load_problems(QuizConfig(file_path=path))

    assert [p.question for p in problems] == [
        "5+5",
        "7+3",
        "1+1",
        "8+3",
        "3*4",
    ]
    assert problems[0] == Problem(question="5+5", answer="10", row=1)
    assert isinstance(problems, tuple)


def test_load_trims_fields_and_ignores_extra_columns(workspace):
    path = workspace.problems(['  what is 2+2 ? ,  4 ,note', '"1,000+1",1001'])

    problems = load_problems(QuizConfig(file_path=path))

    assert problems[0].question == "what is 2+2 ?"
    assert problems[0].answer == "4"
    assert problems[1].question == "1,000+1"


def test_shuffle_is_a_permutation(workspace):
    path = workspace.problems(ROWS)
    ordered = load_problems(QuizConfig(file_path=path))

    shuffled = load_problems(
        QuizConfig(file_path=path, shuffle=True), rng=random.Random(7)
    )

    expected = list(ordered)
    random.Random(7).shuffle(expected)
    assert list(shuffled) == expected
    assert sorted(shuffled, key=lambda p: p.row) == list(ordered)


def test_shuffle_seed_is_repeatable(workspace):
    path = workspace.problems([f"{n}+0,{n}" for n in range(20)])
    config = QuizConfig(file_path=path, shuffle=True, seed=1234)

    assert load_problems(config) == load_problems(config)


def test_short_row_fails_the_whole_load(workspace):
    path = workspace.problems(["1+1,2", "", "3+3", "4+4,8"])

    with pytest.raises(ProblemFormatError) as excinfo:
        load_problems(QuizConfig(file_path=path))

    assert excinfo.value.row == 3
    assert excinfo.value.fields == ("3+3",)
    assert "row 3" in str(excinfo.value)
    assert excinfo.value.exit_code is ExitCode.PARSE_FAILED


def test_non_numeric_answer_rejected_at_load(workspace):
    path = workspace.problems(["1+1,2", "2+2,four"])

    with pytest.raises(ProblemFormatError, match="whole number"):
        load_problems(QuizConfig(file_path=path))


def test_non_numeric_answer_allowed_when_validation_disabled(workspace):
    path = workspace.problems(["2+2,four"])

    problems = load_problems(
        QuizConfig(file_path=path, validate_answers=False)
    )

    assert problems[0].answer == "four"


def test_missing_file_raises_file_error(tmp_path):
    missing = tmp_path / "nope.csv"

    with pytest.raises(ProblemFileError) as excinfo:
        load_problems(QuizConfig(file_path=missing))

    assert str(missing) in str(excinfo.value)
    assert excinfo.value.exit_code is ExitCode.LOAD_FAILED


def test_directory_raises_file_error(tmp_path):
    with pytest.raises(ProblemFileError):
        load_problems(QuizConfig(file_path=tmp_path))


def test_malformed_csv_raises_parse_error(workspace):
    path = workspace.write("bad.csv", '1+1,2\n"5+5"x,10\n')

    with pytest.raises(ProblemParseError) as excinfo:
        load_problems(QuizConfig(file_path=path))

    assert excinfo.value.line == 2


def test_unterminated_quote_raises_parse_error(workspace):
    path = workspace.write("bad.csv", '1+1,2\n"5+5,10\n')

    with pytest.raises(ProblemParseError):
        load_problems(QuizConfig(file_path=path))


def test_bare_quote_in_unquoted_field_raises_parse_error(workspace):
    path = workspace.write("bad.csv", '1+1,2\nwhat is "2+2,4\n')

    with pytest.raises(ProblemParseError, match='bare "') as excinfo:
        load_problems(QuizConfig(file_path=path))

    assert excinfo.value.line == 2


def test_quoted_fields_may_hold_quotes_and_newlines(workspace):
    path = workspace.write(
        "quoted.csv", '"say ""hi"" +1",1\n"two\nlines",2\n3+3,6\n'
    )

    problems = load_problems(QuizConfig(file_path=path))

    assert [p.question for p in problems] == [
        'say "hi" +1',
        "two\nlines",
        "3+3",
    ]


def test_byte_order_mark_is_not_part_of_the_first_question(workspace):
    path = workspace.write("bom.csv", b"\xef\xbb\xbf1+1,2\n")

    problems = load_problems(QuizConfig(file_path=path))

    assert problems[0].question == "1+1"


def test_invalid_utf8_raises_parse_error(workspace):
    path = workspace.write("bad.csv", b"\xff\xfe,1\n")

    with pytest.raises(ProblemParseError, match="UTF-8"):
        load_problems(QuizConfig(file_path=path))


def test_empty_file_yields_no_problems(workspace):
    path = workspace.write("empty.csv", "")

    assert load_problems(QuizConfig(file_path=path)) == ()


def test_load_announces_the_file(workspace):
    path = workspace.problems(ROWS)
    console = recording_console()

    load_problems(QuizConfig(file_path=path), console=console)

    assert "Loading questions from:" in console.export_text()
