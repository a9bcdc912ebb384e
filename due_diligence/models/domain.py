# =============================================================================
# Domain Models — Contracts Between Agents
# =============================================================================
#
# These models are what flows between pipeline stages: the context handed
# to every agent, each agent's typed analysis, the final report, and the
# registry's audit records.
#
# Wire names are camelCase (debtRatio, riskMitigation, agentName) because
# that is the shape the agents ask the LLM to produce and the shape the
# HTTP API returns. Python attributes stay snake_case; both are accepted
# on input.
#
# AgentOutput.result is a discriminated union keyed on `kind`, so a
# consumer always knows which analysis it holds without isinstance checks
# on untyped dicts. The tag is internal and never serialised.
# =============================================================================

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Recommendation(StrEnum):
    PROCEED = "PROCEED"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


class DocumentType(StrEnum):
    FINANCIAL = "financial"
    BUSINESS_PLAN = "business_plan"
    OTHER = "other"


CashFlow = Literal["strong", "moderate", "weak", "unknown"]
Priority = Literal["HIGH", "MEDIUM", "LOW"]

_CASH_FLOW_VALUES = ("strong", "moderate", "weak", "unknown")


# ---------------------------------------------------------------------------
# Analyses
# ---------------------------------------------------------------------------


class Citation(CamelModel):
    """A quoted excerpt backing a claim, with its provenance."""

    source: str
    page: int | None = None
    quote: str = ""

    @field_validator("page", mode="before")
    @classmethod
    def _page_or_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value.isdigit() else None
        return value


class FinancialAnalysis(CamelModel):
    kind: Literal["financial"] = Field(default="financial", exclude=True)
    ebitda: float | None = None
    debt_ratio: float | None = None
    cash_flow: CashFlow = "unknown"
    profitability: str = ""
    risks: list[str] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)

    @field_validator("ebitda", "debt_ratio", mode="before")
    @classmethod
    def _number_or_none(cls, value: object) -> object:
        # "15%" and "1,200" are common in generated text
        if isinstance(value, str):
            cleaned = value.strip().rstrip("%").replace(",", "")
            try:
                return float(cleaned)
            except ValueError:
                return None
        return value

    @field_validator("cash_flow", mode="before")
    @classmethod
    def _normalise_cash_flow(cls, value: object) -> object:
        if value is None:
            return "unknown"
        if isinstance(value, str):
            match = re.match(r"[a-z]+", value.strip().lower())
            word = match.group(0) if match else ""
            return word if word in _CASH_FLOW_VALUES else "unknown"
        return value


class MarketAnalysis(CamelModel):
    kind: Literal["market"] = Field(default="market", exclude=True)
    growth_rate: str = ""
    competition: str = ""
    market_share: str = ""
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)


class RiskMitigation(CamelModel):
    risk: str
    mitigation: str
    priority: Priority = "MEDIUM"

    @field_validator("priority", mode="before")
    @classmethod
    def _upper(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


class DueDiligenceReport(CamelModel):
    """
    Terminal artifact of the pipeline.

    recommendation / summary / list emptiness are NOT enforced here: the
    output guardrail (services/guardrails.validate_output) owns those rules.
    """

    kind: Literal["decision"] = Field(default="decision", exclude=True)
    recommendation: str = ""
    summary: str = ""
    financial_analysis: FinancialAnalysis | None = None
    market_analysis: MarketAnalysis | None = None
    risk_mitigation: list[RiskMitigation] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    timestamp: str = ""


AgentResult = Annotated[
    FinancialAnalysis | MarketAnalysis | DueDiligenceReport,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Documents and agent I/O
# ---------------------------------------------------------------------------


class Document(CamelModel):
    """An admitted upload. Lives for one analysis request."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: DocumentType
    content: str
    uploaded_at: datetime = Field(default_factory=utcnow)
    content_type: str | None = None
    size_bytes: int = 0
    chunk_count: int = 0


class AgentOutput(CamelModel):
    model_config = ConfigDict(frozen=True)

    agent_name: str
    result: AgentResult
    citations: list[Citation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class AgentContext(CamelModel):
    """Input to every agent: sanitised query, admitted documents, and any
    upstream outputs a fan-in agent needs."""

    model_config = ConfigDict(frozen=True)

    query: str
    documents: list[Document] = Field(default_factory=list)
    previous_outputs: dict[str, AgentOutput] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Registry audit records
# ---------------------------------------------------------------------------


class MCPLogContext(CamelModel):
    query: str
    documents_count: int | None = None


class MCPLogResult(CamelModel):
    success: bool
    citations_count: int | None = None
    error: str | None = None


class MCPLog(CamelModel):
    """One entry per invocation attempt. Never holds document text."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    action: str = "invoke"
    context: MCPLogContext
    result: MCPLogResult
    timestamp: datetime = Field(default_factory=utcnow)
    duration_ms: int = 0


class AgentStats(CamelModel):
    total: int = 0
    success: int = 0
    failed: int = 0
