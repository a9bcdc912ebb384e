# =============================================================================
# Agent Contract — Shared Interface and Helpers
# =============================================================================
#
# Every agent satisfies one protocol:
#
#     async run(context: AgentContext) -> AgentOutput
#
# Leaf agents (financial, market) share a four-step shape, implemented once
# in LeafAgent:
#   (a) retrieve top-k matches filtered to the agent's document type
#   (b) flatten them into a numbered evidence block
#   (c) one generation call with the agent's instruction template
#   (d) parse into the agent's analysis model and wrap as AgentOutput
# Any failure in (a)–(d) becomes a single "<Label> failed: ..." error.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import ClassVar, Protocol

from pydantic import BaseModel

from due_diligence.config import settings
from due_diligence.errors import AgentExecutionError
from due_diligence.models.domain import AgentContext, AgentOutput
from due_diligence.services.extraction import extract_json
from due_diligence.services.llm import LLMProvider
from due_diligence.services.retrieval import RetrievalClient
from due_diligence.services.vectorstore import VectorSearchResult

logger = logging.getLogger(__name__)

AgentFn = Callable[[AgentContext], Awaitable[AgentOutput]]


class Agent(Protocol):
    name: str

    async def run(self, context: AgentContext) -> AgentOutput: ...


class FunctionAgent:
    """Adapts a bare async function to the Agent protocol."""

    def __init__(self, fn: AgentFn, name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "function_agent")

    async def run(self, context: AgentContext) -> AgentOutput:
        return await self._fn(context)


def format_evidence(matches: list[VectorSearchResult]) -> str:
    """
    Numbered evidence block for the generation prompt.

    Example:
        Document 1 (Score: 0.87):
        EBITDA margin has grown from 12% to 15%...
        Source: financial_report.pdf
        Page: 4
        ---
    """
    sections = []
    for i, match in enumerate(matches, 1):
        text = match.metadata.get("text") or match.content or "No content"
        source = match.source or "Unknown"
        page = match.page_number or "N/A"
        sections.append(
            f"Document {i} (Score: {match.similarity_score:.2f}):\n"
            f"{text}\n"
            f"Source: {source}\n"
            f"Page: {page}\n"
            f"---"
        )
    return "\n\n".join(sections)


class LeafAgent:
    """
    Retrieval-grounded agent producing one structured analysis.

    Subclasses set the class attributes and implement build_prompt().
    """

    name: ClassVar[str]
    label: ClassVar[str]  # used in error messages, e.g. "Financial Agent"
    query_suffix: ClassVar[str]
    document_type: ClassVar[str]
    result_model: ClassVar[type[BaseModel]]

    temperature: ClassVar[float] = 0.2
    max_tokens: ClassVar[int] = 1500

    def __init__(
        self,
        retrieval: RetrievalClient,
        llm: LLMProvider,
        top_k: int | None = None,
    ) -> None:
        self._retrieval = retrieval
        self._llm = llm
        self.top_k = top_k or settings.retrieval_top_k

    def build_prompt(self, query: str, evidence: str) -> str:
        raise NotImplementedError

    def metadata_filter(self, context: AgentContext) -> dict:
        """Restrict retrieval to this agent's document type within the request."""
        type_filter = {"type": self.document_type}
        if not context.documents:
            return type_filter
        return {"$and": [
            type_filter,
            {"document_id": {"$in": [d.id for d in context.documents]}},
        ]}

    async def run(self, context: AgentContext) -> AgentOutput:
        logger.info("%s starting analysis", self.label)
        try:
            matches = await self._retrieval.search(
                f"{context.query} {self.query_suffix}",
                top_k=self.top_k,
                metadata_filter=self.metadata_filter(context),
            )
            prompt = self.build_prompt(context.query, format_evidence(matches))

            response = await self._llm.complete(
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            analysis = extract_json(response.content, self.result_model)
        except Exception as exc:
            logger.error("%s error: %s", self.label, exc)
            raise AgentExecutionError(f"{self.label} failed: {exc}") from exc

        logger.info(
            "%s completed: %d evidence matches, %d citations",
            self.label, len(matches), len(analysis.citations),
        )
        return AgentOutput(
            agent_name=self.name,
            result=analysis,
            citations=list(analysis.citations or []),
        )
