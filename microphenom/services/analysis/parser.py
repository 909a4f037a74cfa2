"""Validation of raw backend text into an ``AnalysisResult``."""

import json
import logging

from pydantic import ValidationError

from microphenom.core.exceptions import BackendEmptyResponseError, MalformedResultError
from microphenom.core.models import AnalysisResult
from microphenom.core.utils import strip_code_fences

logger = logging.getLogger(__name__)


def parse_analysis_result(raw: str | None) -> AnalysisResult:
    """Parse and validate backend output.

    Markdown fences are stripped, and a top-level array holding a single
    object is unwrapped. Missing or ``null`` fields get empty defaults.

    Args:
        raw: Response text from the backend.

    Returns:
        The validated analysis result.

    Raises:
        BackendEmptyResponseError: If ``raw`` is ``None`` or blank.
        MalformedResultError: If the text is not JSON or does not match
            the result schema.
    """
    if raw is None or not raw.strip():
        raise BackendEmptyResponseError()

    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Analysis response is not valid JSON: %s", text[:200])
        raise MalformedResultError(
            detail=f"Analysis response is not valid JSON ({exc.msg}): {text[:200]}"
        ) from exc

    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if not isinstance(data, dict):
        raise MalformedResultError(
            detail=f"Analysis response must be a JSON object, got {type(data).__name__}"
        )

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        logger.error("Analysis response failed schema validation: %s", exc)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise MalformedResultError(
            detail=f"Analysis response has invalid fields: {fields}"
        ) from exc
