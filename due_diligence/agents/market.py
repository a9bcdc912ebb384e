# =============================================================================
# Market Agent — Growth, Competition, Share, Opportunities and Threats
# =============================================================================
#
# Searches documents classified as "business_plan" and asks the LLM for a
# MarketAnalysis with citations.
# =============================================================================

from __future__ import annotations

from due_diligence.agents.base import LeafAgent
from due_diligence.models.domain import DocumentType, MarketAnalysis

_PROMPT = """You are a market research expert analyzing investment opportunities.

Query: {query}

Available Market & Business Documents:
{evidence}

Analyze the market position and growth potential of this company and provide:
1. Expected growth rate (CAGR or percentage)
2. Competition assessment
3. Current market share
4. Key opportunities
5. Key threats
6. Citations for each claim (use format: [Citation: Source, Page X])

Return your analysis in this exact JSON format:
{{
  "growthRate": "X% CAGR or description",
  "competition": "strong/moderate/weak - detailed analysis",
  "marketShare": "percentage or description",
  "opportunities": ["opportunity 1", "opportunity 2"],
  "threats": ["threat 1", "threat 2"],
  "citations": [
    {{"source": "Business Plan", "page": 8, "quote": "relevant quote"}}
  ]
}}

Be specific and cite sources for all claims. Focus on concrete market data and competitive dynamics."""


class MarketAgent(LeafAgent):
    name = "MarketAgent"
    label = "Market Agent"
    query_suffix = "market growth competition business plan strategy"
    document_type = DocumentType.BUSINESS_PLAN.value
    result_model = MarketAnalysis

    def build_prompt(self, query: str, evidence: str) -> str:
        return _PROMPT.format(query=query, evidence=evidence)
