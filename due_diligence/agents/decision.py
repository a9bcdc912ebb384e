# =============================================================================
# Decision Agent — Fan-In Synthesis
# =============================================================================
#
# Consumes the financial and market outputs and produces the
# DueDiligenceReport: a PROCEED / REVIEW / REJECT recommendation, summary,
# 3–5 prioritised risk mitigations and a merged citation list.
#
# Post-processing after parsing:
#   - timestamp is always overwritten with the current time
#   - analyses the model failed to echo back are filled from the inputs
#   - upstream citations are merged into the report's citation list
#
# Exposed two ways: synthesize() is the direct fan-in contract; run()
# reads the upstream outputs from AgentContext.previous_outputs so the
# registry can audit this step like any other agent.
# =============================================================================

from __future__ import annotations

import logging

from due_diligence.errors import SynthesisError
from due_diligence.models.domain import (
    AgentContext,
    AgentOutput,
    Citation,
    DueDiligenceReport,
    FinancialAnalysis,
    MarketAnalysis,
    utcnow,
)
from due_diligence.services.extraction import extract_json
from due_diligence.services.llm import LLMProvider

logger = logging.getLogger(__name__)

FINANCIAL_KEY = "financial"
MARKET_KEY = "market"

_PROMPT = """You are a senior investment analyst making final due diligence recommendations.

Investment Query: {query}

FINANCIAL ANALYSIS:
{financial}

MARKET ANALYSIS:
{market}

Based on this comprehensive analysis, provide your investment recommendation:

1. Recommendation: Choose one of PROCEED, REVIEW, or REJECT
2. Executive Summary: 2-3 sentences explaining your decision
3. Risk Mitigation: Specific, actionable steps (3-5 items) with priority levels
4. Key Citations: Combine most important citations from both analyses

Return your recommendation in this exact JSON format:
{{
  "recommendation": "PROCEED" | "REVIEW" | "REJECT",
  "summary": "Executive summary explaining the decision",
  "financialAnalysis": {financial},
  "marketAnalysis": {market},
  "riskMitigation": [
    {{
      "risk": "specific risk identified",
      "mitigation": "actionable mitigation strategy",
      "priority": "HIGH" | "MEDIUM" | "LOW"
    }}
  ],
  "citations": [
    {{"source": "source name", "page": number, "quote": "relevant quote"}}
  ],
  "timestamp": "{timestamp}"
}}

Guidelines:
- PROCEED: Strong financials, manageable risks, clear growth path
- REVIEW: Mixed signals, requires additional due diligence
- REJECT: Significant red flags, unacceptable risk level
- Risk mitigation must be specific and actionable
- Include citations for all major claims"""


class DecisionAgent:
    name = "DecisionAgent"

    temperature = 0.3
    max_tokens = 2500

    def __init__(self, llm: LLMProvider) -> None:
        self._llm = llm

    async def synthesize(
        self,
        financial_output: AgentOutput,
        market_output: AgentOutput,
        query: str,
    ) -> DueDiligenceReport:
        """
        Raises:
            SynthesisError: wrong upstream result kinds, generation failure,
                or an unparseable response.
        """
        logger.info("Decision Agent starting synthesis")
        try:
            financial = _expect(financial_output, FinancialAnalysis)
            market = _expect(market_output, MarketAnalysis)

            prompt = _PROMPT.format(
                query=query,
                financial=_dump(financial),
                market=_dump(market),
                timestamp=utcnow().isoformat(),
            )
            response = await self._llm.complete(
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            report = extract_json(response.content, DueDiligenceReport)
        except Exception as exc:
            logger.error("Decision Agent error: %s", exc)
            raise SynthesisError(f"Decision Agent failed: {exc}") from exc

        report = report.model_copy(update={
            "timestamp": utcnow().isoformat(),
            "financial_analysis": report.financial_analysis or financial,
            "market_analysis": report.market_analysis or market,
            "citations": merge_citations(
                report.citations,
                financial_output.citations,
                market_output.citations,
            ),
        })

        logger.info("Decision Agent recommendation: %s", report.recommendation)
        return report

    async def run(self, context: AgentContext) -> AgentOutput:
        missing = [
            key for key in (FINANCIAL_KEY, MARKET_KEY)
            if key not in context.previous_outputs
        ]
        if missing:
            raise SynthesisError(
                f"Decision Agent failed: missing upstream output(s): "
                f"{', '.join(missing)}"
            )

        report = await self.synthesize(
            context.previous_outputs[FINANCIAL_KEY],
            context.previous_outputs[MARKET_KEY],
            context.query,
        )
        return AgentOutput(
            agent_name=self.name,
            result=report,
            citations=list(report.citations),
        )


def merge_citations(*groups: list[Citation]) -> list[Citation]:
    """Concatenate citation lists, dropping exact duplicates, keeping order."""
    seen: set[tuple[str, int | None, str]] = set()
    merged: list[Citation] = []
    for group in groups:
        for citation in group:
            key = (citation.source, citation.page, citation.quote)
            if key not in seen:
                seen.add(key)
                merged.append(citation)
    return merged


def _expect(output: AgentOutput, model: type) -> FinancialAnalysis | MarketAnalysis:
    if not isinstance(output.result, model):
        raise TypeError(
            f"expected {model.__name__} from {output.agent_name}, "
            f"got {type(output.result).__name__}"
        )
    return output.result


def _dump(analysis: FinancialAnalysis | MarketAnalysis) -> str:
    return analysis.model_dump_json(by_alias=True, indent=2)
