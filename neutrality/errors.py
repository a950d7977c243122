"""Error taxonomy for the service and analysis paths.

Per-model provider failures are not represented here: they never leave the
fan-out runner (see ``ProviderError`` and ``ModelResult.error``).
"""

from typing import Any


class NeutralityError(Exception):
    """Base exception for the neutrality service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(NeutralityError):
    """Raised before any network call when a required credential is missing."""


class AnalysisError(NeutralityError):
    """Base class for terminal failures of the analysis call."""


class AnalysisUpstreamError(AnalysisError):
    """The analysis back-end answered with an HTTP error or was unreachable."""

    def __init__(self, status_code: int | None, body: str) -> None:
        status = status_code if status_code is not None else "no response"
        super().__init__(
            f"Analysis request failed ({status}): {body}",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class AnalysisResponseError(AnalysisError):
    """The completion was missing or was not parseable JSON."""


class AnalysisSchemaError(AnalysisError):
    """The parsed JSON did not contain a non-empty ``models`` sequence."""
