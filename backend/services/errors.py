"""
Exception hierarchy for the report pipeline.

Two families:

- GatewayError: a single AI gateway attempt failed (transport, extraction,
  parse or schema validation). The gateway catches these, retries, and hands
  the last one back inside its result; callers never see them raised.
- PipelineError: a condition that aborts a report run. The orchestrator
  records the message on the report, marks it failed and re-raises.
"""

from typing import Any, Dict, List, Optional


# =============================================================================
# AI Gateway Attempt Errors
# =============================================================================

class GatewayError(Exception):
    """Base class for a failed AI gateway attempt."""


class TransportError(GatewayError):
    """Provider call failed (network, timeout, rate limit, server error)."""


class ExtractionError(GatewayError):
    """No JSON payload could be located in the model response."""


class ParseError(GatewayError):
    """A JSON payload was located but could not be decoded."""


class SchemaValidationError(GatewayError):
    """
    Decoded JSON did not satisfy the requested schema.

    Attributes:
        errors: pydantic error dicts (type, loc, msg, ...).
        payload: The decoded value that failed validation.
    """

    def __init__(self, message: str, errors: List[Dict[str, Any]], payload: Any = None):
        super().__init__(message)
        self.errors = errors
        self.payload = payload


# =============================================================================
# Pipeline Errors
# =============================================================================

class PipelineError(Exception):
    """Base class for errors that fail a report run."""


class AIRetryExhaustedError(PipelineError):
    """
    A phase's AI call failed on every attempt.

    Attributes:
        label: Phase label (e.g. "Paid agent").
        attempts: Attempts made.
        last_error: The final attempt's error.
    """

    def __init__(self, label: str, attempts: int, last_error: Optional[GatewayError]):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        detail = f"{type(last_error).__name__}: {last_error}" if last_error else "unknown error"
        super().__init__(f"{label}: AI gateway retries exhausted after {attempts} attempts ({detail})")


class NoDataError(PipelineError):
    """The metrics source returned nothing for the requested window."""

    def __init__(self, message: str = "No data available for analysis"):
        super().__init__(message)


class ClientNotFoundError(PipelineError):
    """The requested client account does not exist."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class ReportNotFoundError(PipelineError):
    """The requested report does not exist."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report not found: {report_id}")


class ConfigurationError(PipelineError):
    """Required configuration (e.g. the selected provider's API key) is missing."""


__all__ = [
    "GatewayError",
    "TransportError",
    "ExtractionError",
    "ParseError",
    "SchemaValidationError",
    "PipelineError",
    "AIRetryExhaustedError",
    "NoDataError",
    "ClientNotFoundError",
    "ReportNotFoundError",
    "ConfigurationError",
]
