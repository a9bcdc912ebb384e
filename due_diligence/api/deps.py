# =============================================================================
# API Dependencies — FastAPI Dependency Injection
# =============================================================================
#
# The registry and pipeline are built once in the app lifespan and stored
# on app.state; routes reach them through these dependencies so tests can
# swap them via app.dependency_overrides.
# =============================================================================

from __future__ import annotations

from fastapi import HTTPException, Request

from due_diligence.agents.orchestrator import DueDiligencePipeline
from due_diligence.agents.registry import AgentRegistry
from due_diligence.services.evals import EvalScenario, load_scenarios


def get_registry(request: Request) -> AgentRegistry:
    return request.app.state.registry


def get_pipeline(request: Request) -> DueDiligencePipeline:
    return request.app.state.pipeline


def get_scenarios() -> list[EvalScenario]:
    """Load eval scenarios; a missing or malformed file is a server error."""
    try:
        return load_scenarios()
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
