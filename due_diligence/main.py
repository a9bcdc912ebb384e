# =============================================================================
# FastAPI Application — Entry Point
# =============================================================================
#
# Run locally:
#   uvicorn due_diligence.main:app --reload
#
# The lifespan wires one object graph per process:
#
#   ChromaVectorStore ─▶ RetrievalClient ─┬─▶ DocumentAdmission ─┐
#                                         └─▶ agents ─▶ AgentRegistry ─┴─▶ DueDiligencePipeline
#
# and stores the registry and pipeline on app.state. LLM providers are
# built on first use, so /health answers even without API keys.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from due_diligence.agents.orchestrator import DueDiligencePipeline
from due_diligence.agents.registry import AgentRegistry, register_default_agents
from due_diligence.api import agents, analyze, evaluate
from due_diligence.config import settings
from due_diligence.models.responses import HealthResponse
from due_diligence.services.admission import DocumentAdmission
from due_diligence.services.llm import (
    LazyProvider,
    create_provider_from_id,
    get_llm_provider,
)
from due_diligence.services.retrieval import RetrievalClient
from due_diligence.services.vectorstore import get_vector_store

logger = logging.getLogger(__name__)


def build_pipeline() -> tuple[AgentRegistry, DueDiligencePipeline]:
    retrieval = RetrievalClient(get_vector_store())

    decision_llm = None
    if settings.decision_provider_id:
        decision_llm = LazyProvider(
            partial(create_provider_from_id, settings.decision_provider_id)
        )

    registry = AgentRegistry()
    register_default_agents(
        registry,
        retrieval,
        LazyProvider(get_llm_provider),
        decision_llm=decision_llm,
    )
    pipeline = DueDiligencePipeline(registry, DocumentAdmission(retrieval))
    return registry, pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "pipeline", None) is None:
        app.state.registry, app.state.pipeline = build_pipeline()
    logger.info(
        "%s v%s started (agents: %s)",
        settings.app_name,
        settings.app_version,
        ", ".join(sorted(app.state.registry.get_registered_agents())),
    )
    yield
    logger.info("%s shutting down", settings.app_name)


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Multi-agent investment due diligence: financial and market "
            "analysis over uploaded documents, synthesised into a "
            "PROCEED / REVIEW / REJECT recommendation."
        ),
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.registry = None
    app.state.pipeline = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(analyze.router)
    app.include_router(agents.router)
    app.include_router(evaluate.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            version=settings.app_version,
            service=settings.app_name,
        )

    return app


app = create_app()
