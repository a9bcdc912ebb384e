# =============================================================================
# Agent Registry — Named Dispatch with an Audit Trail (MCP)
# =============================================================================
#
# Agents are invoked by name through the registry, never directly, so that
# every invocation attempt leaves exactly one MCPLog entry:
#
#   success → {success: True, citationsCount}
#   failure → {success: False, error}   (original exception re-raised)
#
# An unregistered name fails fast with UnregisteredAgentError and is NOT
# logged: no agent was invoked.
#
# Log entries carry the query and a document count only; document content
# never reaches the audit log.
#
# The FastAPI app owns one instance (app.state.registry); tests build
# their own, so there is no module-level singleton here.
# =============================================================================

from __future__ import annotations

import logging
import threading
import time

from due_diligence.agents.base import Agent, AgentFn, FunctionAgent
from due_diligence.agents.decision import DecisionAgent
from due_diligence.agents.financial import FinancialAgent
from due_diligence.agents.market import MarketAgent
from due_diligence.errors import UnregisteredAgentError
from due_diligence.models.domain import (
    AgentContext,
    AgentOutput,
    AgentStats,
    MCPLog,
    MCPLogContext,
    MCPLogResult,
)
from due_diligence.services.llm import LLMProvider
from due_diligence.services.retrieval import RetrievalClient

logger = logging.getLogger(__name__)


class AgentRegistry:
    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._logs: list[MCPLog] = []
        self._lock = threading.Lock()

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    def register_agent(self, name: str, agent: Agent | AgentFn) -> None:
        """Register (or replace) the agent behind `name`. Last write wins."""
        if not hasattr(agent, "run"):
            agent = FunctionAgent(agent, name=name)

        if name in self._agents:
            logger.warning("[MCP] Replacing registered agent: %s", name)
        self._agents[name] = agent
        logger.info("[MCP] Registered agent: %s", name)

    def get_registered_agents(self) -> set[str]:
        return set(self._agents)

    # -----------------------------------------------------------------------
    # Invocation
    # -----------------------------------------------------------------------

    async def invoke_agent(self, name: str, context: AgentContext) -> AgentOutput:
        """
        Run the named agent and record the attempt.

        Raises:
            UnregisteredAgentError: No agent under `name` (nothing logged).
            Exception: Whatever the agent raised, unchanged, after the
                failure entry has been recorded.
        """
        agent = self._agents.get(name)
        if agent is None:
            raise UnregisteredAgentError(name)

        logger.info("[MCP] Invoking agent: %s", name)
        started = time.monotonic()
        try:
            output = await agent.run(context)
        except Exception as exc:
            duration_ms = _elapsed_ms(started)
            self._append(MCPLog(
                agent_name=name,
                context=MCPLogContext(query=context.query),
                result=MCPLogResult(success=False, error=str(exc)),
                duration_ms=duration_ms,
            ))
            logger.error("[MCP] Agent %s failed after %dms: %s", name, duration_ms, exc)
            raise

        duration_ms = _elapsed_ms(started)
        self._append(MCPLog(
            agent_name=name,
            context=MCPLogContext(
                query=context.query,
                documents_count=len(context.documents),
            ),
            result=MCPLogResult(
                success=True,
                citations_count=len(output.citations),
            ),
            duration_ms=duration_ms,
        ))
        logger.info("[MCP] Agent %s completed in %dms", name, duration_ms)
        return output

    # -----------------------------------------------------------------------
    # Audit log
    # -----------------------------------------------------------------------

    def _append(self, entry: MCPLog) -> None:
        with self._lock:
            self._logs.append(entry)

    def get_agent_logs(self, agent_name: str | None = None) -> list[MCPLog]:
        """Snapshot of the log in insertion order, optionally for one agent."""
        with self._lock:
            logs = list(self._logs)
        if agent_name is None:
            return logs
        return [log for log in logs if log.agent_name == agent_name]

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()
        logger.info("[MCP] Logs cleared")

    def get_agent_stats(self) -> dict[str, AgentStats]:
        stats: dict[str, AgentStats] = {}
        for log in self.get_agent_logs():
            entry = stats.setdefault(log.agent_name, AgentStats())
            entry.total += 1
            if log.result.success:
                entry.success += 1
            else:
                entry.failed += 1
        return stats


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def register_default_agents(
    registry: AgentRegistry,
    retrieval: RetrievalClient,
    llm: LLMProvider,
    decision_llm: LLMProvider | None = None,
) -> None:
    """Register the financial, market and decision agents under their
    pipeline names. `decision_llm` lets synthesis use a different model."""
    registry.register_agent("financial", FinancialAgent(retrieval, llm))
    registry.register_agent("market", MarketAgent(retrieval, llm))
    registry.register_agent("decision", DecisionAgent(decision_llm or llm))
