import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gradetrack.cli import app as cli

RUNNER = CliRunner()
RULES_YAML = "code_pattern: '^[A-Z]{4}-[0-9]{4}$'\ncode_format: UUUU-####\n"
SEEDED = [
    {
        "code": "COMP-1000",
        "evaluations": [
            {"description": "Midterm", "out_of": 50, "weight": 20, "earned_marks": None},
            {"description": "Final", "out_of": 100, "weight": 50, "earned_marks": None},
        ],
    }
]


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in ("GRADETRACK_CONFIG", "GRADETRACK_DATA", "GRADETRACK_RULES"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "rules.yaml").write_text(RULES_YAML, encoding="utf-8")
    return tmp_path


def _run_menu(workspace: Path, *answers: str, rules: str = "rules.yaml"):
    args = ["--data", str(workspace / "grades.json"), "--rules", str(workspace / rules)]
    return RUNNER.invoke(cli.app, args, input="".join(f"{answer}\n" for answer in answers))


def _seed(workspace: Path) -> None:
    (workspace / "grades.json").write_text(json.dumps(SEEDED), encoding="utf-8")


def _stored(workspace: Path) -> list:
    return json.loads((workspace / "grades.json").read_text(encoding="utf-8"))


def test_new_gradebook_session(workspace: Path) -> None:
    result = _run_menu(
        workspace,
        "y",  # create the data file
        "A", "comp-1000", "COMP-1000",
        "1", "A", "Midterm", "fifty", "50", "20", "45",
        "X", "X",
    )
    assert result.exit_code == 0, result.output
    assert "New data set created." in result.output
    assert "does not match the required format" in result.output
    assert "'fifty' is not a number." in result.output
    assert _stored(workspace) == [
        {
            "code": "COMP-1000",
            "evaluations": [{"description": "Midterm", "out_of": 50.0, "weight": 20.0, "earned_marks": 45.0}],
        }
    ]


def test_blank_course_code_cancels(workspace: Path) -> None:
    _seed(workspace)
    result = _run_menu(workspace, "A", "", "X")
    assert result.exit_code == 0, result.output
    assert [course["code"] for course in _stored(workspace)] == ["COMP-1000"]


def test_rejected_marks_keep_previous_value(workspace: Path) -> None:
    _seed(workspace)
    result = _run_menu(workspace, "1", "1", "E", "60", "", "E", "40", "X", "X", "X")
    assert result.exit_code == 0, result.output
    assert "marks earned must be between 0 and 50." in result.output
    assert result.output.count("Press ENTER to continue") == 1
    assert _stored(workspace)[0]["evaluations"][0]["earned_marks"] == 40.0


def test_rejected_evaluation_returns_to_course_menu(workspace: Path) -> None:
    _seed(workspace)
    result = _run_menu(workspace, "1", "A", "Project", "10", "31", "", "", "X", "X")
    assert result.exit_code == 0, result.output
    assert "Total weight 101 exceeds 100." in result.output
    rejection = result.output.index("Total weight 101 exceeds 100.")
    assert "Press ENTER to continue" in result.output[rejection:]
    assert [item["description"] for item in _stored(workspace)[0]["evaluations"]] == ["Midterm", "Final"]


def test_delete_evaluation_then_course(workspace: Path) -> None:
    _seed(workspace)
    result = _run_menu(workspace, "1", "2", "D", "y", "X", "X")
    assert result.exit_code == 0, result.output
    assert [item["description"] for item in _stored(workspace)[0]["evaluations"]] == ["Midterm"]

    result = _run_menu(workspace, "1", "D", "y", "X")
    assert result.exit_code == 0, result.output
    assert _stored(workspace) == []


def test_corrupt_gradebook_left_alone_when_declined(workspace: Path) -> None:
    (workspace / "grades.json").write_text("[{broken", encoding="utf-8")
    result = _run_menu(workspace, "n")
    assert result.exit_code == 0, result.output
    assert "Invalid JSON" in result.output
    assert (workspace / "grades.json").read_text(encoding="utf-8") == "[{broken"


def test_missing_rules_notice(workspace: Path) -> None:
    _seed(workspace)
    result = _run_menu(workspace, "A", "anything goes", "X", rules="missing.yaml")
    assert result.exit_code == 0, result.output
    assert "Course rules are not enforced" in result.output
    assert [course["code"] for course in _stored(workspace)] == ["COMP-1000", "anything goes"]
