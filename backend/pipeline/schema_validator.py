"""
Stage 7: Schema Validation
Re-validates a run's serialized results against the PharmaResult schema
before they are returned to a caller.
"""

import logging
from typing import Any, Dict, List, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from models.schemas import PharmaResult

logger = logging.getLogger(__name__)

SCHEMA_FAILURE_MESSAGE = "Result failed schema validation. Please re-check input."

_RESULTS_ADAPTER = TypeAdapter(List[PharmaResult])


class ResultSchemaError(Exception):
    """Raised when a result array does not match the output schema."""

    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__(SCHEMA_FAILURE_MESSAGE)
        self.errors = errors


def validate_pharma_results(
    results: Sequence[Union[PharmaResult, Dict[str, Any]]],
) -> List[PharmaResult]:
    """
    Validate results as they will be serialized.
    Model instances are dumped to JSON-compatible dicts first so the check
    covers what a consumer actually receives.
    """
    payload = [r.model_dump(mode="json") if isinstance(r, PharmaResult) else r for r in results]
    try:
        return _RESULTS_ADAPTER.validate_python(payload)
    except ValidationError as e:
        logger.error(f"Result schema validation failed: {e.error_count()} error(s)")
        raise ResultSchemaError(e.errors(include_url=False, include_context=False, include_input=False)) from e
