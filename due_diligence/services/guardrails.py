# =============================================================================
# Guardrails — Input / Output / Document Validation
# =============================================================================
#
# Two kinds of check:
#
#   Sanitisation (sanitize_input) — always applied, cannot fail.
#   Gating (validate_*) — raise a GuardrailError subclass; callers invoke
#   them explicitly at each trust boundary.
#
# Advisory checks (missing investment keywords, sensitive-data patterns)
# log a warning and never block the pipeline.
#
# BOUNDARIES:
#   user query      → sanitize_input + validate_input
#   uploaded files  → validate_document
#   final report    → validate_output + check_sensitive_data
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from typing import Protocol

from due_diligence.errors import (
    DocumentTooLargeError,
    EmptyOutputError,
    EmptyQueryError,
    InvalidRecommendationError,
    MalformedOutputError,
    MissingFieldsError,
    QueryTooLongError,
    UnsupportedDocumentTypeError,
)
from due_diligence.models.domain import Recommendation

logger = logging.getLogger(__name__)


MAX_QUERY_LENGTH = 1000

INVESTMENT_KEYWORDS: tuple[str, ...] = (
    "invest",
    "investment",
    "due diligence",
    "company",
    "business",
    "financial",
    "market",
    "analysis",
    "opportunity",
)

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset({
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

REQUIRED_REPORT_FIELDS: tuple[str, ...] = (
    "recommendation",
    "summary",
    "riskMitigation",
    "citations",
)

# ---------------------------------------------------------------------------
# Injection patterns stripped by sanitize_input
# ---------------------------------------------------------------------------
_INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<iframe[^>]*>.*?</iframe>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
)

_SENSITIVE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),
    ("Credit Card", re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b")),
    ("Email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
)


class UploadLike(Protocol):
    """Anything with a declared media type and a byte size."""

    @property
    def content_type(self) -> str | None: ...

    @property
    def size(self) -> int: ...


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def sanitize_input(text: str) -> str:
    """
    Strip script/iframe blocks, `javascript:` URIs and inline event-handler
    attributes, then trim whitespace.

    Patterns are removed repeatedly until nothing changes, so input like
    "javajavascript:script:" cannot re-form a pattern after one pass and
    sanitize_input(sanitize_input(x)) == sanitize_input(x).
    """
    sanitized = text
    while True:
        previous = sanitized
        for pattern in _INJECTION_PATTERNS:
            sanitized = pattern.sub("", sanitized)
        if sanitized == previous:
            break
    return sanitized.strip()


def has_investment_context(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in INVESTMENT_KEYWORDS)


def validate_input(text: str) -> None:
    """
    Gate the (already sanitised) user query.

    Raises:
        EmptyQueryError: text is empty or whitespace only.
        QueryTooLongError: text exceeds MAX_QUERY_LENGTH characters.
    """
    if not text or not text.strip():
        raise EmptyQueryError("Query cannot be empty")

    if len(text) > MAX_QUERY_LENGTH:
        raise QueryTooLongError(
            f"Query exceeds maximum length of {MAX_QUERY_LENGTH} characters"
        )

    if not has_investment_context(text):
        logger.warning(
            "Query may not be investment-related. Proceeding with caution."
        )

    logger.debug("Input validation passed")


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def validate_document(file: UploadLike, max_size_mb: float = 10) -> None:
    """
    Gate an uploaded file on declared media type, then size.

    Raises:
        UnsupportedDocumentTypeError: media type not in ALLOWED_CONTENT_TYPES.
        DocumentTooLargeError: size exceeds max_size_mb (MiB).
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise UnsupportedDocumentTypeError(
            "Invalid file type. Only PDF, TXT, DOC, and DOCX are allowed"
        )

    max_size_bytes = int(max_size_mb * 1024 * 1024)
    if file.size > max_size_bytes:
        raise DocumentTooLargeError(
            f"File size exceeds {max_size_mb:g}MB limit"
        )

    logger.debug("Document validation passed")


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def validate_output(json_text: str) -> None:
    """
    Gate the serialised DueDiligenceReport.

    Raises:
        EmptyOutputError: text is empty or whitespace only.
        MalformedOutputError: text is not a JSON object.
        MissingFieldsError: a required field is absent or empty.
        InvalidRecommendationError: recommendation outside the enum.
    """
    if not json_text or not json_text.strip():
        raise EmptyOutputError("Output cannot be empty")

    try:
        report = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"Invalid JSON output: {exc}") from exc

    if not isinstance(report, dict):
        raise MalformedOutputError(
            f"Invalid JSON output: expected an object, got "
            f"{type(report).__name__}"
        )

    missing = [
        name for name in REQUIRED_REPORT_FIELDS
        if _is_empty(report.get(name))
    ]
    if missing:
        raise MissingFieldsError(missing)

    recommendation = report["recommendation"]
    valid = [r.value for r in Recommendation]
    if recommendation not in valid:
        raise InvalidRecommendationError(
            f"Invalid recommendation: {recommendation}. "
            f"Must be one of: {', '.join(valid)}"
        )

    logger.debug("Output validation passed")


def check_sensitive_data(text: str) -> list[str]:
    """Return advisory warnings for SSN, card-number and email patterns."""
    warnings = [
        f"Potential {name} detected in output"
        for name, pattern in _SENSITIVE_PATTERNS
        if pattern.search(text)
    ]
    if warnings:
        logger.warning("Sensitive data warnings: %s", warnings)
    return warnings


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return not value
