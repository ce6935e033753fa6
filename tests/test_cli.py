"""
Tests for the so-audit command line.
"""

import json

import pytest
from typer.testing import CliRunner

from so_audit.main import app

from samples import SCENARIO_A_OBJECTIVES, SCENARIO_A_REQUIREMENTS, SCENARIO_B_OBJECTIVES, SCENARIO_B_REQUIREMENTS

runner = CliRunner()


@pytest.fixture
def scenario_a(write_doc):
    write_doc("objectives.md", SCENARIO_A_OBJECTIVES)
    write_doc("requirements.md", SCENARIO_A_REQUIREMENTS)
    return ["-o", "objectives.md", "-r", "requirements.md", "--reports-dir", "reports"]


@pytest.fixture
def scenario_b(write_doc):
    write_doc("objectives.md", SCENARIO_B_OBJECTIVES)
    write_doc("requirements.md", SCENARIO_B_REQUIREMENTS)
    return ["-o", "objectives.md", "-r", "requirements.md", "--reports-dir", "reports"]


class TestCheck:

    def test_critical_issues_fail(self, tmp_path, scenario_a):
        result = runner.invoke(app, ["check", *scenario_a])

        assert result.exit_code == 1
        assert "CRITICAL issues found" in result.output
        latest = tmp_path / "reports" / "latest.md"
        assert "| CONS-01 | Critical |" in latest.read_text(encoding="utf-8")
        assert (tmp_path / "reports" / "latest.json").exists()
        assert len(list((tmp_path / "reports").glob("*_eval.md"))) == 1

    def test_no_fail_on_critical(self, scenario_a):
        result = runner.invoke(app, ["check", *scenario_a, "--no-fail-on-critical"])

        assert result.exit_code == 0

    def test_major_issues_pass(self, scenario_b):
        result = runner.invoke(app, ["check", *scenario_b, "--no-summary"])

        assert result.exit_code == 0

    def test_custom_output_json(self, tmp_path, scenario_b):
        result = runner.invoke(app, ["check", *scenario_b, "--output", "out.json", "--output-format", "json"])

        assert result.exit_code == 0
        data = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
        assert data["issues_by_rule"] == {"missing_coverage": 1}
        assert not (tmp_path / "reports").exists()

    def test_missing_input(self, scenario_a):
        result = runner.invoke(app, ["check", "-o", "nope.md", "-r", "requirements.md"])

        assert result.exit_code == 2
        assert "nope.md: file not found" in result.output

    def test_output_is_a_directory(self, tmp_path, scenario_b):
        (tmp_path / "out").mkdir()

        result = runner.invoke(app, ["check", *scenario_b, "--output", "out"])

        assert result.exit_code == 2
        assert "cannot write report" in result.output

    def test_strict_mode_load_error(self, write_doc):
        write_doc("requirements.md", "- BR-2: Customers can cancel a booking.\n")

        result = runner.invoke(app, ["check", "-r", "requirements.md", "--strict"])

        assert result.exit_code == 2
        assert "BR-2" in result.output

    def test_unknown_mode(self, scenario_a):
        result = runner.invoke(app, ["check", *scenario_a, "--mode", "draft"])

        assert result.exit_code == 2

    def test_recheck(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["check", *scenario_a, "--mode", "recheck"])

        assert result.exit_code == 1
        latest = (tmp_path / "reports" / "latest.md").read_text(encoding="utf-8")
        assert "## Recheck" in latest
        assert "- **Persisting:** CONS-01" in latest
        assert len(list((tmp_path / "reports").glob("*_recheck.md"))) == 1

    def test_environment_configures_reports_dir(self, tmp_path, monkeypatch, write_doc):
        write_doc("objectives.md", SCENARIO_B_OBJECTIVES)
        write_doc("requirements.md", SCENARIO_B_REQUIREMENTS)
        monkeypatch.setenv("SO_AUDIT_REPORTS_DIR", "from-env")

        result = runner.invoke(app, ["check", "-o", "objectives.md", "-r", "requirements.md"])

        assert result.exit_code == 0
        assert (tmp_path / "from-env" / "latest.md").exists()


class TestSelect:

    def test_select_prints_markdown(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["select", "reports/latest.json", "CONS-01"])

        assert result.exit_code == 0
        assert "# Selected consistency issues" in result.output
        assert "| CONS-01 | Critical |" in result.output

    def test_unknown_ids(self, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["select", "reports/latest.json", "CONS-09"])

        assert result.exit_code == 2
        assert "Unknown issue id: CONS-09" in result.output

    def test_select_to_file(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["select", "reports/latest.json", "CONS-01,CONS-09", "--output", "patch.md"])

        assert result.exit_code == 0
        assert "| CONS-01 |" in (tmp_path / "patch.md").read_text(encoding="utf-8")

    def test_select_output_is_a_directory(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])
        (tmp_path / "patch").mkdir()

        result = runner.invoke(app, ["select", "reports/latest.json", "CONS-01", "--output", "patch"])

        assert result.exit_code == 2
        assert "cannot write report" in result.output

    def test_missing_report(self):
        result = runner.invoke(app, ["select", "reports/latest.json", "CONS-01"])

        assert result.exit_code == 2


class TestReset:

    def test_reset_with_yes(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["reset", "--reports-dir", "reports", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 3" in result.output
        assert (tmp_path / "reports").is_dir()
        assert list((tmp_path / "reports").iterdir()) == []

    def test_reset_declined(self, tmp_path, scenario_a):
        runner.invoke(app, ["check", *scenario_a])

        result = runner.invoke(app, ["reset", "--reports-dir", "reports"], input="n\n")

        assert result.exit_code == 1
        assert (tmp_path / "reports" / "latest.md").exists()
