# =============================================================================
# Unit Tests — JSON Extraction
# =============================================================================

from __future__ import annotations

import pytest

from due_diligence.errors import AgentExecutionError, ExtractionError
from due_diligence.models.domain import FinancialAnalysis, MarketAnalysis
from due_diligence.services.extraction import extract_json


class TestExtractJson:

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks.'
        assert extract_json(text) == {"a": 1}

    def test_fenced_block_label_case_insensitive(self):
        assert extract_json('```JSON\n{"a": 2}\n```') == {"a": 2}

    def test_bare_json(self):
        assert extract_json('  {"a": [1, 2]}  ') == {"a": [1, 2]}

    def test_bare_json_array(self):
        assert extract_json("[1, 2, 3]") == [1, 2, 3]

    def test_fenced_block_preferred_over_surrounding_text(self):
        text = 'prefix {"ignored": true}\n```json\n{"used": true}\n```'
        assert extract_json(text) == {"used": True}

    def test_malformed_fenced_block_does_not_fall_back(self):
        text = '```json\n{broken\n```'
        with pytest.raises(ExtractionError, match="Failed to extract JSON"):
            extract_json(text)

    def test_prose_raises(self):
        with pytest.raises(ExtractionError):
            extract_json("I could not find anything relevant.")

    def test_empty_raises(self):
        with pytest.raises(ExtractionError):
            extract_json("")

    def test_no_repair_of_trailing_comma(self):
        with pytest.raises(ExtractionError):
            extract_json('{"a": 1,}')

    def test_extraction_error_is_agent_error(self):
        assert issubclass(ExtractionError, AgentExecutionError)


class TestExtractIntoModel:

    def test_financial_analysis_from_camel_case(self):
        text = """```json
{
  "ebitda": "15%",
  "debtRatio": 0.7,
  "cashFlow": "strong",
  "profitability": "Improving margins",
  "risks": ["Currency exposure"],
  "citations": [{"source": "financial_report.pdf", "page": "4", "quote": "EBITDA up"}]
}
```"""
        analysis = extract_json(text, FinancialAnalysis)
        assert isinstance(analysis, FinancialAnalysis)
        assert analysis.ebitda == 15.0
        assert analysis.debt_ratio == 0.7
        assert analysis.cash_flow == "strong"
        assert analysis.citations[0].page == 4

    def test_cash_flow_phrase_normalised(self):
        analysis = extract_json('{"cashFlow": "Moderate, but improving"}', FinancialAnalysis)
        assert analysis.cash_flow == "moderate"

    def test_unknown_cash_flow_falls_back(self):
        analysis = extract_json('{"cashFlow": "excellent"}', FinancialAnalysis)
        assert analysis.cash_flow == "unknown"

    def test_non_numeric_page_becomes_none(self):
        analysis = extract_json(
            '{"citations": [{"source": "plan.pdf", "page": "N/A"}]}', MarketAnalysis,
        )
        assert analysis.citations[0].page is None

    def test_validation_failure_raises(self):
        with pytest.raises(ExtractionError, match="MarketAnalysis"):
            extract_json('{"opportunities": "not a list"}', MarketAnalysis)

    def test_citation_without_source_rejected(self):
        with pytest.raises(ExtractionError):
            extract_json('{"citations": [{"page": 1}]}', FinancialAnalysis)
