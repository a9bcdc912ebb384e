# =============================================================================
# Unit Tests — Scenario Evals
# =============================================================================
#
# Substring scoring, scenario loading, the Markdown report, and a check
# that the bundled scenarios pass against the bundled sample report.
# =============================================================================

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from due_diligence.services.evals import (
    EvalScenario,
    generate_eval_report,
    load_scenarios,
    run_all_evals,
    run_eval,
)

ROOT = Path(__file__).resolve().parents[2]
BUNDLED_SCENARIOS = ROOT / "data" / "evals.json"

SCENARIOS = [
    EvalScenario(id=1, scenario="High leverage", expected_risk="Debt Risk",
                 pass_criteria=["debt", "covenant"]),
    EvalScenario(id=2, scenario="FX exposure", expected_risk="Currency Risk",
                 pass_criteria=["currency", "hedge"]),
]


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "evals.json"
    path.write_text(json.dumps(payload))
    return path


# ---------------------------------------------------------------------------
# Test: Loading
# ---------------------------------------------------------------------------


class TestLoadScenarios:

    def test_bundled_file_loads(self):
        scenarios = load_scenarios(BUNDLED_SCENARIOS)
        assert len(scenarios) >= 5
        assert len({s.id for s in scenarios}) == len(scenarios)
        assert all(s.pass_criteria for s in scenarios)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_scenarios(tmp_path / "nope.json")

    def test_empty_list_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="non-empty"):
            load_scenarios(_write(tmp_path, []))

    def test_missing_field_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="pass_criteria"):
            load_scenarios(_write(tmp_path, [
                {"id": 1, "scenario": "x", "expected_risk": "y"},
            ]))

    def test_criteria_must_be_list(self, tmp_path):
        with pytest.raises(ValueError, match="must be a list"):
            load_scenarios(_write(tmp_path, [
                {"id": 1, "scenario": "x", "expected_risk": "y", "pass_criteria": "debt"},
            ]))


# ---------------------------------------------------------------------------
# Test: Scoring
# ---------------------------------------------------------------------------


class TestRunEval:

    def test_all_criteria_present(self):
        result = run_eval("Monitor DEBT Covenants quarterly", 1, SCENARIOS)
        assert result.passed is True
        assert result.details == "✓ All criteria passed: debt, covenant"

    def test_partial_match_fails(self):
        result = run_eval("Currency exposure is material", 2, SCENARIOS)
        assert result.passed is False
        assert result.details == "✗ Failed criteria: hedge. Passed: currency"

    def test_unknown_scenario(self):
        with pytest.raises(KeyError, match="Scenario 42 not found"):
            run_eval("text", 42, SCENARIOS)

    def test_run_all_in_order(self):
        results = run_all_evals("debt covenant currency hedge", SCENARIOS)
        assert [r.scenario_id for r in results] == [1, 2]
        assert all(r.passed for r in results)

    def test_run_selected(self):
        results = run_all_evals("currency hedge", SCENARIOS, scenario_ids=[2])
        assert [r.scenario_id for r in results] == [2]


class TestGenerateEvalReport:

    def test_report_structure(self):
        results = run_all_evals("debt covenant", SCENARIOS)
        report = generate_eval_report(results, SCENARIOS)

        assert report.startswith("# Evaluation Report")
        assert "**Overall Score:** 1/2 (50.0%)" in report
        assert "## Scenario 1: ✓ PASS" in report
        assert "## Scenario 2: ✗ FAIL" in report
        assert "**Expected Risk:** Currency Risk" in report

    def test_one_decimal_percentage(self):
        scenarios = SCENARIOS + [
            EvalScenario(id=3, scenario="x", expected_risk="y", pass_criteria=["zzz"]),
        ]
        results = run_all_evals("debt covenant", scenarios)
        assert "**Overall Score:** 1/3 (33.3%)" in generate_eval_report(results, scenarios)

    def test_empty_results(self):
        assert "**Overall Score:** 0/0 (0.0%)" in generate_eval_report([], SCENARIOS)


# ---------------------------------------------------------------------------
# Test: Bundled sample report
# ---------------------------------------------------------------------------


def _load_run_evals_script():
    spec = importlib.util.spec_from_file_location(
        "run_evals_script", ROOT / "scripts" / "run_evals.py",
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestBundledSampleReport:

    def test_sample_report_passes_every_bundled_scenario(self):
        script = _load_run_evals_script()
        scenarios = load_scenarios(BUNDLED_SCENARIOS)
        results = run_all_evals(script.SAMPLE_REPORT, scenarios)
        failed = [r.details for r in results if not r.passed]
        assert failed == []

    def test_script_exit_code(self, tmp_path, monkeypatch):
        script = _load_run_evals_script()
        monkeypatch.chdir(ROOT)
        assert script.main([]) == 0

        weak = tmp_path / "weak.md"
        weak.write_text("Recommendation: PROCEED. No risks.")
        assert script.main([str(weak)]) == 1
