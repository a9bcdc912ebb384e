# =============================================================================
# JSON Extraction — Generated Text → Typed Structure
# =============================================================================
#
# The single point where a misbehaving generation response becomes a typed
# pipeline failure. Two strategies, tried in order:
#
#   1. A fenced block labelled json (```json ... ```) — parse its contents
#   2. No such block — parse the whole response
#
# No repair of malformed JSON is attempted; a failure surfaces as
# ExtractionError.
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar, overload

from pydantic import BaseModel, ValidationError

from due_diligence.errors import ExtractionError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL | re.IGNORECASE)


@overload
def extract_json(text: str) -> Any: ...


@overload
def extract_json(text: str, model: type[ModelT]) -> ModelT: ...


def extract_json(text: str, model: type[BaseModel] | None = None) -> Any:
    """
    Extract a JSON value from LLM output, optionally validating it.

    Args:
        text: Raw generated text.
        model: Optional Pydantic model to validate the parsed value into.

    Returns:
        The parsed JSON value, or a `model` instance when one is given.

    Raises:
        ExtractionError: Neither strategy yields valid JSON, or the value
            does not match `model`.
    """
    match = _FENCED_JSON.search(text or "")
    candidate = match.group(1) if match else (text or "").strip()

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.error(
            "JSON extraction failed (%s strategy): %s",
            "fenced" if match else "direct", exc,
        )
        raise ExtractionError("Failed to extract JSON from response") from exc

    if model is None:
        return data

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.error(
            "Extracted JSON does not match %s: %d error(s)",
            model.__name__, exc.error_count(),
        )
        raise ExtractionError(
            f"Response does not match {model.__name__}: {exc.error_count()} "
            f"validation error(s)"
        ) from exc
