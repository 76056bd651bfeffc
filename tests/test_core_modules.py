import tempfile
import unittest
from pathlib import Path

from gradetrack import get_version
from gradetrack.core.config import AppConfig, load_app_config
from gradetrack.core.records import Course, Evaluation, EvaluationDraft
from gradetrack.core.rules import DEFAULT_CODE_PATTERN, RuleConfigError, RuleSet, load_rule_set

REPO_ROOT = Path(__file__).resolve().parents[1]


class ConfigParsingTests(unittest.TestCase):
    def _write_yaml(self, data: str) -> Path:
        tmp = tempfile.NamedTemporaryFile("w", delete=False, suffix=".yaml")
        tmp.write(data)
        tmp.flush()
        tmp.close()
        self.addCleanup(lambda: Path(tmp.name).unlink(missing_ok=True))
        return Path(tmp.name)

    def test_defaults_resolve_against_base_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir).resolve()
            config = AppConfig().resolved(base)
            self.assertEqual(config.storage.data_path, base / "grades.json")
            self.assertEqual(config.rules.rules_path, base / "config" / "rules.yaml")
            self.assertEqual(config.logging.level, "WARNING")

    def test_load_app_config(self) -> None:
        path = self._write_yaml(
            """
            storage:
              data_path: data/my_grades.json
            rules:
              rules_path: /etc/gradetrack/rules.yaml
            logging:
              level: debug
            """
        )
        config = load_app_config(path)
        self.assertEqual(config.storage.data_path, (path.parent / "data" / "my_grades.json").resolve())
        self.assertEqual(config.rules.rules_path, Path("/etc/gradetrack/rules.yaml").resolve())
        self.assertEqual(config.logging.level, "DEBUG")

    def test_load_app_config_with_base_dir(self) -> None:
        path = self._write_yaml("storage:\n  data_path: grades.json\n")
        with tempfile.TemporaryDirectory() as tmpdir:
            config = load_app_config(path, base_dir=Path(tmpdir))
            self.assertEqual(config.storage.data_path, Path(tmpdir).resolve() / "grades.json")

    def test_null_rules_path_disables_rules(self) -> None:
        path = self._write_yaml("rules:\n  rules_path: null\n")
        config = load_app_config(path)
        self.assertIsNone(config.rules.rules_path)

    def test_empty_config_file_uses_defaults(self) -> None:
        path = self._write_yaml("")
        config = load_app_config(path)
        self.assertEqual(config.storage.data_path.name, "grades.json")

    def test_invalid_config_raises_value_error(self) -> None:
        path = self._write_yaml("logging:\n  level: LOUD\n")
        with self.assertRaises(ValueError) as ctx:
            load_app_config(path)
        self.assertIn("Invalid gradetrack config", str(ctx.exception))

    def test_unknown_section_key_is_rejected(self) -> None:
        path = self._write_yaml("storage:\n  data_file: x.json\n")
        with self.assertRaises(ValueError):
            load_app_config(path)

    def test_shipped_config_files_parse(self) -> None:
        config = load_app_config(REPO_ROOT / "config" / "gradetrack.yaml", base_dir=REPO_ROOT)
        self.assertEqual(config.rules.rules_path, (REPO_ROOT / "config" / "rules.yaml").resolve())
        rules = load_rule_set(config.rules.rules_path)
        self.assertEqual(rules, RuleSet())


class RuleSetTests(unittest.TestCase):
    def test_defaults(self) -> None:
        rules = RuleSet()
        self.assertEqual(rules.code_pattern, DEFAULT_CODE_PATTERN)
        self.assertIsNotNone(rules.code_regex.fullmatch("COMP-1000"))
        self.assertIsNone(rules.code_regex.fullmatch("COMP-100"))
        self.assertEqual(rules.max_total_weight, 100)

    def test_missing_file_raises_rule_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(RuleConfigError):
                load_rule_set(Path(tmpdir) / "absent.yaml")

    def test_rule_config_error_is_value_error(self) -> None:
        self.assertTrue(issubclass(RuleConfigError, ValueError))


class RecordModelTests(unittest.TestCase):
    def test_legacy_keys_are_accepted(self) -> None:
        course = Course.model_validate(
            {
                "Code": "COMP-1000",
                "Evaluations": [{"Description": "Quiz", "OutOf": 10, "Weight": 5, "EarnedMarks": None}],
            }
        )
        self.assertEqual(course.code, "COMP-1000")
        self.assertEqual(course.evaluations[0].out_of, 10.0)
        self.assertFalse(course.evaluations[0].graded)

    def test_dump_uses_snake_case(self) -> None:
        course = Course(code="COMP-1000", evaluations=[Evaluation(description="Quiz", out_of=10, weight=5, earned_marks=7)])
        payload = course.model_dump(mode="json")
        self.assertEqual(
            payload,
            {
                "code": "COMP-1000",
                "evaluations": [{"description": "Quiz", "out_of": 10.0, "weight": 5.0, "earned_marks": 7.0}],
            },
        )

    def test_draft_builds_ungraded_evaluation(self) -> None:
        evaluation = EvaluationDraft(description="Final", out_of=100, weight=50).to_evaluation()
        self.assertIsInstance(evaluation, Evaluation)
        self.assertIsNone(evaluation.earned_marks)

    def test_version_is_a_string(self) -> None:
        self.assertIsInstance(get_version(), str)


if __name__ == "__main__":
    unittest.main()
