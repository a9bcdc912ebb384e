# =============================================================================
# Error Taxonomy
# =============================================================================
#
#   DueDiligenceError
#   ├── GuardrailError            — input/output/document contract violations
#   │   ├── EmptyQueryError, QueryTooLongError
#   │   ├── UnsupportedDocumentTypeError, DocumentTooLargeError
#   │   └── EmptyOutputError, MalformedOutputError,
#   │       MissingFieldsError, InvalidRecommendationError
#   ├── UnregisteredAgentError    — wiring bug: no agent under that name
#   ├── RetrievalError            — vector search / indexing unavailable
#   └── AgentExecutionError       — failure inside an agent
#       ├── ExtractionError       — generated text not parseable
#       └── SynthesisError        — decision agent failure
#
# Every layer below the HTTP handler re-raises. The handler is the only
# place a failure becomes a user-facing message.
# =============================================================================

from __future__ import annotations

GUARDRAIL_MARKER = "[Guardrail]"


class DueDiligenceError(Exception):
    """Base class for all errors raised by the due-diligence pipeline."""


# ---------------------------------------------------------------------------
# Guardrail errors
# ---------------------------------------------------------------------------


class GuardrailError(DueDiligenceError):
    """
    A trust-boundary contract was violated.

    Messages are prefixed with GUARDRAIL_MARKER so they can be told apart
    from downstream parse errors in logs and error payloads.
    """

    def __init__(self, message: str) -> None:
        if not message.startswith(GUARDRAIL_MARKER):
            message = f"{GUARDRAIL_MARKER} {message}"
        super().__init__(message)


class EmptyQueryError(GuardrailError):
    pass


class QueryTooLongError(GuardrailError):
    pass


class UnsupportedDocumentTypeError(GuardrailError):
    pass


class DocumentTooLargeError(GuardrailError):
    pass


class EmptyOutputError(GuardrailError):
    pass


class MalformedOutputError(GuardrailError):
    pass


class MissingFieldsError(GuardrailError):
    """Report lacks one or more required fields (or they are empty)."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(
            f"Output missing required fields: {', '.join(self.fields)}"
        )


class InvalidRecommendationError(GuardrailError):
    pass


# ---------------------------------------------------------------------------
# Registry / collaborator errors
# ---------------------------------------------------------------------------


class UnregisteredAgentError(DueDiligenceError):
    def __init__(self, name: str) -> None:
        self.agent_name = name
        super().__init__(f"Agent {name} not registered")


class RetrievalError(DueDiligenceError):
    pass


# ---------------------------------------------------------------------------
# Agent execution errors
# ---------------------------------------------------------------------------


class AgentExecutionError(DueDiligenceError):
    pass


class ExtractionError(AgentExecutionError):
    pass


class SynthesisError(AgentExecutionError):
    pass
