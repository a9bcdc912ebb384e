# =============================================================================
# Agents API — Registry Introspection
# =============================================================================
#
#   GET    /agents              → registered agent names
#   GET    /agents/logs?agent=  → audit log, optionally for one agent
#   GET    /agents/stats        → per-agent total / success / failed
#   DELETE /agents/logs         → clear the audit log (204)
#
# Logs are in-memory and scoped to the process; they are gone on restart.
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from due_diligence.agents.registry import AgentRegistry
from due_diligence.api.deps import get_registry
from due_diligence.models.responses import (
    AgentListResponse,
    AgentLogsResponse,
    AgentStatsResponse,
)

router = APIRouter(prefix="/agents", tags=["Agents"])


@router.get("", response_model=AgentListResponse, summary="List registered agents")
async def list_agents(
    registry: AgentRegistry = Depends(get_registry),
) -> AgentListResponse:
    return AgentListResponse(agents=sorted(registry.get_registered_agents()))


@router.get("/logs", response_model=AgentLogsResponse, summary="Agent audit log")
async def agent_logs(
    agent: str | None = Query(default=None, description="Filter by agent name"),
    registry: AgentRegistry = Depends(get_registry),
) -> AgentLogsResponse:
    logs = registry.get_agent_logs(agent)
    return AgentLogsResponse(logs=logs, total=len(logs))


@router.get("/stats", response_model=AgentStatsResponse, summary="Agent statistics")
async def agent_stats(
    registry: AgentRegistry = Depends(get_registry),
) -> AgentStatsResponse:
    return AgentStatsResponse(stats=registry.get_agent_stats())


@router.delete("/logs", status_code=204, summary="Clear the audit log")
async def clear_agent_logs(
    registry: AgentRegistry = Depends(get_registry),
) -> Response:
    registry.clear_logs()
    return Response(status_code=204)
