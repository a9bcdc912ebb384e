# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# POST /analyze returns DueDiligenceReport directly (camelCase, the same
# shape the agents produce). The registry endpoints wrap the domain audit
# models so list responses are objects, not bare arrays.
# =============================================================================

from pydantic import BaseModel, Field

from due_diligence.models.domain import AgentStats, MCPLog


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class AgentListResponse(BaseModel):
    agents: list[str] = Field(description="Registered agent names, sorted")


class AgentLogsResponse(BaseModel):
    logs: list[MCPLog]
    total: int


class AgentStatsResponse(BaseModel):
    stats: dict[str, AgentStats]


class EvalResultItem(BaseModel):
    scenario_id: int
    passed: bool
    details: str


class EvaluateResponse(BaseModel):
    """Response for POST /evaluate."""

    results: list[EvalResultItem]
    passed: int
    total: int
    report: str = Field(description="Markdown evaluation report")
