# =============================================================================
# Scenario Evals — Substring Checks over a Rendered Report
# =============================================================================
#
# Each scenario names a risk a competent due-diligence report should
# address, plus the phrases that must appear for it to count as covered:
#
#   {"id": 1, "scenario": "...", "expected_risk": "...",
#    "pass_criteria": ["debt", "covenant"]}
#
# A scenario passes when EVERY criterion occurs in the report text
# (case-insensitive). Deterministic and free: no LLM involved.
#
# Scenarios live in JSON (EVAL_SCENARIOS_PATH, default data/evals.json).
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from due_diligence.config import settings

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "scenario", "expected_risk", "pass_criteria")


@dataclass
class EvalScenario:
    id: int
    scenario: str
    expected_risk: str
    pass_criteria: list[str] = field(default_factory=list)


@dataclass
class EvalResult:
    scenario_id: int
    passed: bool
    details: str


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_scenarios(path: str | Path | None = None) -> list[EvalScenario]:
    """
    Load and validate eval scenarios from a JSON array.

    Raises:
        FileNotFoundError: If the scenario file does not exist.
        ValueError: If the file is not a non-empty list of well-formed
            scenarios.
    """
    filepath = Path(path or settings.eval_scenarios_path)
    if not filepath.exists():
        raise FileNotFoundError(f"Eval scenarios not found at {filepath}")

    with open(filepath, encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list) or not raw:
        raise ValueError("Eval scenarios must be a non-empty JSON array")

    scenarios = []
    for item in raw:
        missing = [name for name in _REQUIRED_FIELDS if name not in item]
        if missing:
            raise ValueError(
                f"Eval scenario missing required field(s) {missing}: {item}"
            )
        if not isinstance(item["pass_criteria"], list):
            raise ValueError(
                f"Scenario {item['id']}: pass_criteria must be a list"
            )
        scenarios.append(EvalScenario(
            id=int(item["id"]),
            scenario=item["scenario"],
            expected_risk=item["expected_risk"],
            pass_criteria=[str(c) for c in item["pass_criteria"]],
        ))

    logger.info("Loaded %d eval scenarios from %s", len(scenarios), filepath)
    return scenarios


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


def run_eval(
    agent_output: str,
    scenario_id: int,
    scenarios: list[EvalScenario],
) -> EvalResult:
    """
    Raises:
        KeyError: No scenario with `scenario_id`.
    """
    scenario = _find(scenarios, scenario_id)
    logger.info("[Eval] Running scenario %d: %s", scenario_id, scenario.scenario)

    haystack = agent_output.lower()
    passed_criteria = [c for c in scenario.pass_criteria if c.lower() in haystack]
    failed_criteria = [c for c in scenario.pass_criteria if c.lower() not in haystack]

    passed = not failed_criteria
    if passed:
        details = f"✓ All criteria passed: {', '.join(passed_criteria)}"
    else:
        details = (
            f"✗ Failed criteria: {', '.join(failed_criteria)}. "
            f"Passed: {', '.join(passed_criteria)}"
        )

    return EvalResult(scenario_id=scenario_id, passed=passed, details=details)


def run_all_evals(
    agent_output: str,
    scenarios: list[EvalScenario],
    scenario_ids: list[int] | None = None,
) -> list[EvalResult]:
    ids = scenario_ids if scenario_ids is not None else [s.id for s in scenarios]
    results = [run_eval(agent_output, sid, scenarios) for sid in ids]

    logger.info(
        "[Eval] Summary: %d/%d scenarios passed",
        sum(r.passed for r in results), len(results),
    )
    return results


def generate_eval_report(
    results: list[EvalResult],
    scenarios: list[EvalScenario],
) -> str:
    """Markdown summary with an overall score and one section per scenario."""
    passed = sum(r.passed for r in results)
    total = len(results)
    percentage = (passed / total * 100) if total else 0.0

    lines = [
        "# Evaluation Report",
        "",
        f"**Overall Score:** {passed}/{total} ({percentage:.1f}%)",
        "",
    ]
    for result in results:
        scenario = _find(scenarios, result.scenario_id)
        status = "✓ PASS" if result.passed else "✗ FAIL"
        lines += [
            f"## Scenario {result.scenario_id}: {status}",
            f"**Description:** {scenario.scenario}",
            f"**Expected Risk:** {scenario.expected_risk}",
            f"**Result:** {result.details}",
            "",
        ]
    return "\n".join(lines)


def _find(scenarios: list[EvalScenario], scenario_id: int) -> EvalScenario:
    for scenario in scenarios:
        if scenario.id == scenario_id:
            return scenario
    raise KeyError(f"Scenario {scenario_id} not found")
