# =============================================================================
# LangGraph Pipeline — Due-Diligence Graph Assembly
# =============================================================================
#
# One analysis request flows through a StateGraph:
#
#   START ──▶ validate_input ──▶ admit_documents ──┬──▶ financial ──┐
#                                                  └──▶ market ─────┴──▶ decision
#                                                                          │
#                                              END ◀── validate_output ◀───┘
#
# financial and market share a super-step, so LangGraph runs them
# concurrently; decision is a join and only fires once both have written
# their outputs. Every agent call goes through the registry, so each
# request leaves three MCPLog entries on success.
#
# All-or-nothing: an exception in any node propagates out of run() and no
# partial report is returned. Advisory findings (off-topic query,
# sensitive data in the report) are collected in `warnings` and do not
# block.
#
# Admitted documents live for one request: run() releases their chunks
# from the index once the graph finishes, whether or not it succeeded.
# The admission node records them in a per-run list passed through the
# LangGraph config, since a failed run returns no state.
#
# The graph is compiled once per pipeline instance. The registry and
# admission service are bound into the node closures rather than carried
# in state, so state stays plain data.
# =============================================================================

from __future__ import annotations

import logging
import operator
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Annotated

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from due_diligence.agents.decision import FINANCIAL_KEY, MARKET_KEY
from due_diligence.agents.registry import AgentRegistry
from due_diligence.models.domain import (
    AgentContext,
    AgentOutput,
    Document,
    DueDiligenceReport,
)
from due_diligence.services.admission import DocumentAdmission, UploadedFile
from due_diligence.services.guardrails import (
    check_sensitive_data,
    has_investment_context,
    sanitize_input,
    validate_input,
    validate_output,
)

logger = logging.getLogger(__name__)

DECISION_KEY = "decision"

OFF_TOPIC_WARNING = "Query may not be investment-related"

ADMITTED_KEY = "admitted_documents"


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class PipelineState(TypedDict, total=False):
    # --- Input ---
    query: str
    files: list[UploadedFile]

    # --- Intermediate ---
    sanitized_query: str
    documents: list[Document]
    context: AgentContext
    financial_output: AgentOutput
    market_output: AgentOutput

    # --- Output ---
    report: DueDiligenceReport
    # parallel branches may both append
    warnings: Annotated[list[str], operator.add]


@dataclass
class PipelineResult:
    report: DueDiligenceReport
    warnings: list[str] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class DueDiligencePipeline:
    def __init__(self, registry: AgentRegistry, admission: DocumentAdmission) -> None:
        self._registry = registry
        self._admission = admission
        self._graph = self._build()

    def _build(self):
        builder = StateGraph(PipelineState)
        builder.add_node("validate_input", self._validate_input_node)
        builder.add_node("admit_documents", self._admit_documents_node)
        builder.add_node("financial", self._financial_node)
        builder.add_node("market", self._market_node)
        builder.add_node("decision", self._decision_node)
        builder.add_node("validate_output", self._validate_output_node)

        builder.add_edge(START, "validate_input")
        builder.add_edge("validate_input", "admit_documents")
        builder.add_edge("admit_documents", "financial")
        builder.add_edge("admit_documents", "market")
        builder.add_edge(["financial", "market"], "decision")
        builder.add_edge("decision", "validate_output")
        builder.add_edge("validate_output", END)
        return builder.compile()

    async def run(self, query: str, files: Iterable[UploadedFile]) -> PipelineResult:
        """
        Execute one due-diligence analysis end to end.

        Raises:
            GuardrailError: Query, document or report rejected.
            AgentExecutionError: A leaf agent or the synthesis step failed.
            RetrievalError: Indexing or search failed.
        """
        files = list(files)
        logger.info(
            "Starting due diligence: query='%s', %d document(s)",
            query[:80], len(files),
        )

        admitted: list[Document] = []
        try:
            state = await self._graph.ainvoke(
                {"query": query, "files": files, "warnings": []},
                config={"configurable": {ADMITTED_KEY: admitted}},
            )
        finally:
            await self._admission.release(admitted)

        report = state["report"]
        logger.info(
            "Due diligence complete: recommendation=%s, %d warning(s)",
            report.recommendation, len(state.get("warnings", [])),
        )
        return PipelineResult(
            report=report,
            warnings=list(state.get("warnings", [])),
            documents=list(state.get("documents", [])),
        )

    # -----------------------------------------------------------------------
    # Nodes — each returns a partial state update
    # -----------------------------------------------------------------------

    async def _validate_input_node(self, state: PipelineState) -> dict:
        sanitized = sanitize_input(state["query"])
        validate_input(sanitized)

        warnings = []
        if not has_investment_context(sanitized):
            warnings.append(OFF_TOPIC_WARNING)
        return {"sanitized_query": sanitized, "warnings": warnings}

    async def _admit_documents_node(self, state: PipelineState, config) -> dict:
        documents = await self._admission.admit_all(state.get("files", []))
        config["configurable"][ADMITTED_KEY].extend(documents)
        logger.info("Admitted %d document(s)", len(documents))
        return {
            "documents": documents,
            "context": AgentContext(
                query=state["sanitized_query"],
                documents=documents,
            ),
        }

    async def _financial_node(self, state: PipelineState) -> dict:
        output = await self._registry.invoke_agent(FINANCIAL_KEY, state["context"])
        return {"financial_output": output}

    async def _market_node(self, state: PipelineState) -> dict:
        output = await self._registry.invoke_agent(MARKET_KEY, state["context"])
        return {"market_output": output}

    async def _decision_node(self, state: PipelineState) -> dict:
        context = state["context"].model_copy(update={
            "previous_outputs": {
                FINANCIAL_KEY: state["financial_output"],
                MARKET_KEY: state["market_output"],
            },
        })
        output = await self._registry.invoke_agent(DECISION_KEY, context)
        return {"report": output.result}

    async def _validate_output_node(self, state: PipelineState) -> dict:
        serialized = state["report"].model_dump_json(by_alias=True)
        validate_output(serialized)
        return {"warnings": check_sensitive_data(serialized)}
