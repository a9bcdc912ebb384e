# =============================================================================
# Financial Agent — EBITDA, Leverage, Cash Flow, Profitability
# =============================================================================
#
# Searches documents classified as "financial" and asks the LLM for a
# FinancialAnalysis with citations.
# =============================================================================

from __future__ import annotations

from due_diligence.agents.base import LeafAgent
from due_diligence.models.domain import DocumentType, FinancialAnalysis

_PROMPT = """You are a financial due diligence expert analyzing investment opportunities.

Query: {query}

Available Financial Documents:
{evidence}

Analyze the financial health of this company and provide:
1. EBITDA percentage (if available)
2. Debt ratio (debt-to-equity or total debt)
3. Cash flow assessment
4. Profitability analysis
5. Key financial risks
6. Citations for each claim (use format: [Citation: Source, Page X])

Return your analysis in this exact JSON format:
{{
  "ebitda": number or null,
  "debtRatio": number or null,
  "cashFlow": "strong/moderate/weak/unknown",
  "profitability": "detailed analysis",
  "risks": ["risk 1", "risk 2"],
  "citations": [
    {{"source": "Financial Report", "page": 4, "quote": "relevant quote"}}
  ]
}}

Be specific and cite sources for all claims. If data is not available, mark as null or "unknown"."""


class FinancialAgent(LeafAgent):
    name = "FinancialAgent"
    label = "Financial Agent"
    query_suffix = "financial metrics EBITDA debt cash flow"
    document_type = DocumentType.FINANCIAL.value
    result_model = FinancialAnalysis

    def build_prompt(self, query: str, evidence: str) -> str:
        return _PROMPT.format(query=query, evidence=evidence)
