# =============================================================================
# Analyze API — Multi-Agent Due-Diligence Endpoint
# =============================================================================
#
# POST /analyze (multipart/form-data):
#   query   — the investment question
#   files[] — one or more documents (PDF, DOCX, DOC, TXT)
#
# Returns the DueDiligenceReport as camelCase JSON.
#
# Status codes:
#   400 — blank query or no documents (checked before the pipeline runs)
#   500 — anything the pipeline raises, guardrail rejections included;
#         the error message is the detail
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from due_diligence.agents.orchestrator import DueDiligencePipeline
from due_diligence.api.deps import get_pipeline
from due_diligence.models.domain import DueDiligenceReport
from due_diligence.services.admission import UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Due Diligence"])


@router.post(
    "/analyze",
    response_model=DueDiligenceReport,
    summary="Run a due-diligence analysis over uploaded documents",
    description=(
        "Admits the uploaded documents, runs the financial and market "
        "agents in parallel, and synthesises a PROCEED / REVIEW / REJECT "
        "recommendation with risk mitigations and citations."
    ),
)
async def analyze_endpoint(
    query: str | None = Form(default=None),
    files: list[UploadFile] | None = File(default=None),
    pipeline: DueDiligencePipeline = Depends(get_pipeline),
) -> DueDiligenceReport:
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")
    if not files:
        raise HTTPException(
            status_code=400, detail="At least one document is required",
        )

    uploads = [
        UploadedFile(
            filename=f.filename or "upload",
            content_type=f.content_type,
            data=await f.read(),
        )
        for f in files
    ]

    logger.info(
        "Analyze request: query='%s', files=%s",
        query[:80], [u.filename for u in uploads],
    )

    try:
        result = await pipeline.run(query, uploads)
    except Exception as e:
        logger.exception("Due diligence failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e

    for warning in result.warnings:
        logger.warning("Analysis warning: %s", warning)

    return result.report
