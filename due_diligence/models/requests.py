# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# POST /analyze is multipart (query + files), so it is declared with
# Form/File parameters in the route rather than a body model. Only the
# JSON endpoints need a schema here.
# =============================================================================

from pydantic import BaseModel, Field


class EvaluateRequest(BaseModel):
    """Request body for POST /evaluate."""

    output: str = Field(
        ...,
        min_length=1,
        description="Rendered report text (Markdown or JSON) to score",
        examples=["## Recommendation: REVIEW\n..."],
    )
    scenario_ids: list[int] | None = Field(
        default=None,
        description="Scenarios to run. Omit to run every scenario.",
    )
