# =============================================================================
# Investment Due-Diligence Agent
# =============================================================================
# A multi-agent RAG service that turns uploaded company documents into an
# investment recommendation. Two leaf agents (financial, market) analyse
# retrieved evidence; a decision agent fans their outputs into a single
# report. Every agent call goes through an audited registry, and guardrails
# validate the query on the way in and the report on the way out.
#
# Package structure:
#   due_diligence/
#   ├── api/          → FastAPI route handlers (analyze, agents, evaluate)
#   ├── agents/       → Agent implementations, registry (MCP), LangGraph
#   │                    pipeline driver
#   ├── models/       → Pydantic V2 domain, request and response schemas
#   └── services/     → Guardrails, LLM + retrieval clients, parsing,
#                        chunking, document admission, eval scenarios
# =============================================================================

__version__ = "0.1.0"
