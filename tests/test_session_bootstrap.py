import os
from pathlib import Path

import pytest

from gradetrack.core.validation import ValidatorMode
from gradetrack.session import LoadStatus, bootstrap_session

RULES_YAML = "code_pattern: '^[A-Z]{4}-[0-9]{4}$'\nmax_total_weight: 100\n"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GRADETRACK_CONFIG", "GRADETRACK_DATA", "GRADETRACK_RULES"):
        monkeypatch.delenv(key, raising=False)


def _write_rules(base: Path) -> Path:
    rules = base / "config" / "rules.yaml"
    rules.parent.mkdir(parents=True, exist_ok=True)
    rules.write_text(RULES_YAML, encoding="utf-8")
    return rules


def test_defaults_without_rules_fall_back_to_accept_all(tmp_path: Path) -> None:
    session = bootstrap_session(base_dir=tmp_path)
    assert session.config.storage.data_path == tmp_path.resolve() / "grades.json"
    assert session.validator.mode is ValidatorMode.ACCEPT_ALL
    assert len(session.startup_notices) == 1
    assert "not enforced" in session.startup_notices[0]
    assert len(session.store) == 0


def test_default_rules_location_is_picked_up(tmp_path: Path) -> None:
    _write_rules(tmp_path)
    session = bootstrap_session(base_dir=tmp_path)
    assert session.validator.mode is ValidatorMode.STRICT
    assert session.startup_notices == []


def test_config_file_in_base_dir_is_used(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "gradetrack.yaml").write_text(
        "storage:\n  data_path: data/mine.json\nrules:\n  rules_path: null\n",
        encoding="utf-8",
    )
    session = bootstrap_session(base_dir=tmp_path)
    assert session.config.storage.data_path == tmp_path.resolve() / "data" / "mine.json"
    assert session.validator.mode is ValidatorMode.ACCEPT_ALL
    assert session.validator.fallback_reason == "No rules file configured"


def test_explicit_paths_override_config(tmp_path: Path) -> None:
    rules = _write_rules(tmp_path / "elsewhere")
    session = bootstrap_session(base_dir=tmp_path, data_path=Path("other.json"), rules_path=rules)
    assert session.config.storage.data_path == tmp_path.resolve() / "other.json"
    assert session.config.rules.rules_path == rules.resolve()
    assert session.validator.mode is ValidatorMode.STRICT


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    rules = _write_rules(tmp_path / "env")
    monkeypatch.setenv("GRADETRACK_DATA", str(tmp_path / "env" / "grades.json"))
    monkeypatch.setenv("GRADETRACK_RULES", str(rules))
    session = bootstrap_session(base_dir=tmp_path)
    assert session.config.storage.data_path == (tmp_path / "env" / "grades.json").resolve()
    assert session.validator.mode is ValidatorMode.STRICT
    assert session.env["GRADETRACK_DATA"].endswith("grades.json")


def test_dotenv_file_is_loaded(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("GRADETRACK_DATA=from_dotenv.json\n", encoding="utf-8")
    try:
        session = bootstrap_session(base_dir=tmp_path)
        assert session.config.storage.data_path == tmp_path.resolve() / "from_dotenv.json"
    finally:
        os.environ.pop("GRADETRACK_DATA", None)


def test_invalid_config_raises(tmp_path: Path) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("logging:\n  level: LOUD\n", encoding="utf-8")
    with pytest.raises(ValueError):
        bootstrap_session(config, base_dir=tmp_path)


def test_load_reports_missing_then_save_creates_file(tmp_path: Path) -> None:
    session = bootstrap_session(base_dir=tmp_path)
    report = session.load()
    assert report.status is LoadStatus.MISSING
    assert not report.ok
    assert session.save()
    assert session.repository.exists()
    assert session.load().status is LoadStatus.LOADED


def test_load_failure_leaves_store_empty(tmp_path: Path) -> None:
    (tmp_path / "grades.json").write_text("{broken", encoding="utf-8")
    session = bootstrap_session(base_dir=tmp_path)
    report = session.load()
    assert report.status is LoadStatus.FAILED
    assert "Invalid JSON" in report.message
    assert len(session.store) == 0
    assert session.last_error == report.message


def test_undecodable_gradebook_reports_failure(tmp_path: Path) -> None:
    (tmp_path / "grades.json").write_bytes(b'[{"code": "\xff"}]')
    session = bootstrap_session(base_dir=tmp_path)
    report = session.load()
    assert report.status is LoadStatus.FAILED
    assert "not valid UTF-8" in report.message
    assert len(session.store) == 0


def test_missing_config_file_raises_value_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError) as excinfo:
        bootstrap_session(tmp_path / "nope.yaml", base_dir=tmp_path)
    assert "Cannot read config" in str(excinfo.value)


def test_commit_save_and_reload(tmp_path: Path) -> None:
    _write_rules(tmp_path)
    session = bootstrap_session(base_dir=tmp_path)
    session.load()
    assert session.controller.add_course("COMP-1000").committed
    assert session.controller.add_evaluation(0, {"description": "Quiz", "out_of": 10, "weight": 10}).committed
    assert session.save()

    reopened = bootstrap_session(base_dir=tmp_path)
    report = reopened.load()
    assert report.ok and report.count == 1
    assert reopened.store.dump() == session.store.dump()


def test_failed_save_keeps_store_and_reports(tmp_path: Path) -> None:
    target = tmp_path / "grades_dir"
    target.mkdir()
    session = bootstrap_session(base_dir=tmp_path, data_path=target)
    session.controller.add_course("COMP-1000")
    before = session.store.dump()
    assert not session.save()
    assert session.last_error
    assert session.store.dump() == before


def test_close_empties_store(tmp_path: Path) -> None:
    session = bootstrap_session(base_dir=tmp_path)
    session.controller.add_course("COMP-1000")
    session.close()
    assert len(session.store) == 0
