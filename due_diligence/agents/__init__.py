# =============================================================================
# Agents Package — Multi-Agent Orchestration
# =============================================================================
#   - base.py: Agent protocol, evidence formatting, function adapter
#   - financial.py / market.py: leaf agents over retrieved evidence
#   - decision.py: fan-in agent producing the DueDiligenceReport
#   - registry.py: agent registry with an append-only invocation audit log
#   - orchestrator.py: LangGraph pipeline (validate → admit → leaves →
#     decision → validate)
# =============================================================================
