# =============================================================================
# API Tests — FastAPI TestClient with dependency overrides
# =============================================================================
#
# The pipeline is replaced by a fake; the registry is real so the /agents
# endpoints serialise genuine MCPLog entries. TestClient is used without
# its context manager, so the lifespan (vector store, LLM wiring) never
# runs.
# =============================================================================

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from due_diligence.agents.orchestrator import PipelineResult
from due_diligence.agents.registry import AgentRegistry
from due_diligence.api.deps import get_pipeline, get_registry, get_scenarios
from due_diligence.errors import (
    AgentExecutionError,
    EmptyQueryError,
    UnsupportedDocumentTypeError,
)
from due_diligence.main import create_app
from due_diligence.models.domain import (
    AgentContext,
    AgentOutput,
    Citation,
    DueDiligenceReport,
    FinancialAnalysis,
    MarketAnalysis,
    RiskMitigation,
)
from due_diligence.services.evals import EvalScenario


def _report() -> DueDiligenceReport:
    return DueDiligenceReport(
        recommendation="PROCEED",
        summary="Healthy margins and growing market.",
        risk_mitigation=[RiskMitigation(risk="FX", mitigation="Hedge", priority="LOW")],
        citations=[Citation(source="financial_report.pdf", page=4, quote="EBITDA 15%")],
        timestamp="2026-01-01T00:00:00+00:00",
    )


class FakePipeline:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, list]] = []

    async def run(self, query, files):
        self.calls.append((query, list(files)))
        if self.error:
            raise self.error
        return PipelineResult(report=_report())


async def _stub_agent(context: AgentContext) -> AgentOutput:
    citation = Citation(source="s.pdf", page=1)
    return AgentOutput(
        agent_name="Stub", result=FinancialAnalysis(citations=[citation]),
        citations=[citation],
    )


def _client(pipeline=None, registry=None, scenarios=None):
    app = create_app()
    registry = registry or AgentRegistry()
    pipeline = pipeline or FakePipeline()
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    if scenarios is not None:
        app.dependency_overrides[get_scenarios] = lambda: scenarios
    return TestClient(app), pipeline, registry


def _upload(name="financial_report.txt", body=b"EBITDA 15%", ctype="text/plain"):
    return ("files", (name, body, ctype))


# ---------------------------------------------------------------------------
# Test: POST /analyze
# ---------------------------------------------------------------------------


class TestAnalyze:

    def test_success_returns_camel_case_report(self):
        client, pipeline, _ = _client()
        resp = client.post(
            "/analyze",
            data={"query": "Should we invest?"},
            files=[_upload(), _upload("business_plan.txt", b"CAGR 10%")],
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["recommendation"] == "PROCEED"
        assert body["riskMitigation"][0]["priority"] == "LOW"
        assert body["citations"][0]["page"] == 4

        query, files = pipeline.calls[0]
        assert query == "Should we invest?"
        assert [f.filename for f in files] == ["financial_report.txt", "business_plan.txt"]
        assert files[0].content_type == "text/plain"
        assert files[0].data == b"EBITDA 15%"

    def test_report_has_no_internal_kind_tag(self):
        report = _report().model_copy(update={
            "financial_analysis": FinancialAnalysis(ebitda=15),
            "market_analysis": MarketAnalysis(growth_rate="10% CAGR"),
        })

        class Pipeline(FakePipeline):
            async def run(self, query, files):
                return PipelineResult(report=report)

        client, _, _ = _client(pipeline=Pipeline())
        body = client.post(
            "/analyze", data={"query": "Invest?"}, files=[_upload()],
        ).json()

        assert "kind" not in body
        assert "kind" not in body["financialAnalysis"]
        assert "kind" not in body["marketAnalysis"]
        assert body["financialAnalysis"]["ebitda"] == 15

    def test_missing_query(self):
        client, pipeline, _ = _client()
        resp = client.post("/analyze", files=[_upload()])
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Query is required"
        assert pipeline.calls == []

    def test_blank_query_reaches_input_guardrail(self):
        error = EmptyQueryError("Query cannot be empty")
        client, pipeline, _ = _client(pipeline=FakePipeline(error=error))
        resp = client.post("/analyze", data={"query": "   "}, files=[_upload()])
        assert resp.status_code == 500
        assert resp.json()["detail"] == "[Guardrail] Query cannot be empty"
        assert pipeline.calls[0][0] == "   "

    def test_no_files(self):
        client, pipeline, _ = _client()
        resp = client.post("/analyze", data={"query": "Should we invest?"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "At least one document is required"
        assert pipeline.calls == []

    def test_guardrail_error_is_500_with_message(self):
        error = UnsupportedDocumentTypeError(
            "Invalid file type. Only PDF, TXT, DOC, and DOCX are allowed",
        )
        client, _, _ = _client(pipeline=FakePipeline(error=error))
        resp = client.post(
            "/analyze", data={"query": "Invest?"},
            files=[_upload("x.zip", b"PK", "application/zip")],
        )
        assert resp.status_code == 500
        assert resp.json()["detail"].startswith("[Guardrail] Invalid file type")

    def test_agent_error_is_500(self):
        client, _, _ = _client(
            pipeline=FakePipeline(error=AgentExecutionError("Market Agent failed: boom")),
        )
        resp = client.post("/analyze", data={"query": "Invest?"}, files=[_upload()])
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Market Agent failed: boom"

    def test_cors_preflight(self):
        client, _, _ = _client()
        resp = client.options(
            "/analyze",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


# ---------------------------------------------------------------------------
# Test: /agents
# ---------------------------------------------------------------------------


class TestAgentsEndpoints:

    def _registry_with_logs(self) -> AgentRegistry:
        registry = AgentRegistry()
        registry.register_agent("market", _stub_agent)
        registry.register_agent("financial", _stub_agent)
        asyncio.run(registry.invoke_agent("financial", AgentContext(query="Invest?")))
        return registry

    def test_list_agents_sorted(self):
        client, _, _ = _client(registry=self._registry_with_logs())
        resp = client.get("/agents")
        assert resp.status_code == 200
        assert resp.json() == {"agents": ["financial", "market"]}

    def test_logs(self):
        client, _, _ = _client(registry=self._registry_with_logs())
        body = client.get("/agents/logs").json()
        assert body["total"] == 1
        log = body["logs"][0]
        assert log["agentName"] == "financial"
        assert log["result"]["success"] is True
        assert log["result"]["citationsCount"] == 1
        assert log["context"]["query"] == "Invest?"

    def test_logs_filtered(self):
        client, _, _ = _client(registry=self._registry_with_logs())
        assert client.get("/agents/logs", params={"agent": "market"}).json()["total"] == 0

    def test_stats(self):
        client, _, _ = _client(registry=self._registry_with_logs())
        stats = client.get("/agents/stats").json()["stats"]
        assert stats == {"financial": {"total": 1, "success": 1, "failed": 0}}

    def test_clear_logs(self):
        registry = self._registry_with_logs()
        client, _, _ = _client(registry=registry)
        resp = client.delete("/agents/logs")
        assert resp.status_code == 204
        assert registry.get_agent_logs() == []


# ---------------------------------------------------------------------------
# Test: /evaluate and /health
# ---------------------------------------------------------------------------


SCENARIOS = [
    EvalScenario(id=1, scenario="Debt", expected_risk="Debt Risk",
                 pass_criteria=["debt", "covenant"]),
    EvalScenario(id=2, scenario="FX", expected_risk="Currency Risk",
                 pass_criteria=["currency"]),
]


class TestEvaluateEndpoint:

    def test_all_scenarios(self):
        client, _, _ = _client(scenarios=SCENARIOS)
        resp = client.post("/evaluate", json={"output": "Debt covenants are tight."})
        assert resp.status_code == 200
        body = resp.json()
        assert body["passed"] == 1
        assert body["total"] == 2
        assert body["results"][0]["passed"] is True
        assert body["results"][1]["passed"] is False
        assert "**Overall Score:** 1/2 (50.0%)" in body["report"]

    def test_selected_scenarios(self):
        client, _, _ = _client(scenarios=SCENARIOS)
        body = client.post(
            "/evaluate", json={"output": "currency", "scenario_ids": [2]},
        ).json()
        assert body["total"] == 1
        assert body["passed"] == 1

    def test_unknown_scenario(self):
        client, _, _ = _client(scenarios=SCENARIOS)
        resp = client.post("/evaluate", json={"output": "x", "scenario_ids": [99]})
        assert resp.status_code == 400
        assert "Scenario 99 not found" in resp.json()["detail"]

    def test_empty_output_rejected(self):
        client, _, _ = _client(scenarios=SCENARIOS)
        assert client.post("/evaluate", json={"output": ""}).status_code == 422


class TestHealth:

    def test_health(self):
        client, _, _ = _client()
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["version"] == "0.1.0"
        assert body["service"]
