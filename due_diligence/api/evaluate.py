# =============================================================================
# Evaluation API — Scenario Checks over a Report
# =============================================================================
#
# POST /evaluate scores a rendered report against the eval scenarios and
# returns per-scenario results plus a Markdown summary. Runs synchronously:
# substring checks are instant.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from due_diligence.api.deps import get_scenarios
from due_diligence.models.requests import EvaluateRequest
from due_diligence.models.responses import EvalResultItem, EvaluateResponse
from due_diligence.services.evals import (
    EvalScenario,
    generate_eval_report,
    run_all_evals,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Evaluation"])


@router.post(
    "/evaluate",
    response_model=EvaluateResponse,
    summary="Score a report against the eval scenarios",
)
async def evaluate_endpoint(
    request: EvaluateRequest,
    scenarios: list[EvalScenario] = Depends(get_scenarios),
) -> EvaluateResponse:
    try:
        results = run_all_evals(request.output, scenarios, request.scenario_ids)
    except KeyError as e:
        # unknown scenario id
        raise HTTPException(status_code=400, detail=str(e.args[0])) from e

    return EvaluateResponse(
        results=[
            EvalResultItem(
                scenario_id=r.scenario_id, passed=r.passed, details=r.details,
            )
            for r in results
        ],
        passed=sum(r.passed for r in results),
        total=len(results),
        report=generate_eval_report(results, scenarios),
    )
