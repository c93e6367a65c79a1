"""
Custom exception types for concord.

This module defines the exception hierarchy used at the boundaries of the
aggregation engine. The numeric core never raises for missing data or cycles;
these exceptions cover malformed input, configuration and survey fetching.
Using specific exception types enables:
- Targeted except blocks in callers (CLI, services)
- Structured details for logging
- A clear split between "input is broken" and "fetch failed"
"""

from __future__ import annotations

from typing import Any


class ConcordError(Exception):
    """Base exception for all concord errors.

    All custom exceptions in concord inherit from this class so callers can
    catch every concord-specific failure with a single handler.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(ConcordError):
    """Base exception for input validation errors."""

    pass


class SnapshotFormatError(ValidationError):
    """Raised when a diagram snapshot cannot be interpreted."""

    def __init__(self, reason: str, source: str | None = None):
        msg = f"Invalid diagram snapshot: {reason}"
        if source:
            msg = f"Invalid diagram snapshot from {source}: {reason}"
        super().__init__(msg, {"reason": reason, "source": source})
        self.reason = reason
        self.source = source


class PayloadFormatError(ValidationError):
    """Raised when a survey payload is missing required structure."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            f"Malformed survey payload from {source}: {reason}",
            {"source": source, "reason": reason},
        )
        self.source = source
        self.reason = reason


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(ConcordError):
    """Raised when a component's configuration is missing or invalid."""

    def __init__(self, component: str, reason: str):
        super().__init__(
            f"Configuration error in {component}: {reason}",
            {"component": component, "reason": reason},
        )
        self.component = component
        self.reason = reason


# ============================================================================
# Survey Errors
# ============================================================================


class SurveyError(ConcordError):
    """Base exception for survey-related errors."""

    pass


class SurveyNotFoundError(SurveyError):
    """Raised when a requested survey cannot be found."""

    def __init__(self, survey_id: str):
        super().__init__(f"Survey not found: {survey_id}", {"survey_id": survey_id})
        self.survey_id = survey_id


# ============================================================================
# Infrastructure Errors
# ============================================================================


class ExternalServiceError(ConcordError):
    """Raised when an external service call fails."""

    def __init__(self, service: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"External service '{service}' failed: {reason}",
            {"service": service, "reason": reason, "status_code": status_code},
        )
        self.service = service
        self.reason = reason
        self.status_code = status_code


class SurveyFetchError(ExternalServiceError):
    """Raised when survey data cannot be fetched from the survey API."""

    def __init__(self, survey_id: str, reason: str, status_code: int | None = None):
        ConcordError.__init__(
            self,
            f"Failed to fetch survey {survey_id}: {reason}",
            {"survey_id": survey_id, "reason": reason, "status_code": status_code},
        )
        self.service = "survey-api"
        self.reason = reason
        self.status_code = status_code
        self.survey_id = survey_id


__all__ = [
    "ConcordError",
    "ValidationError",
    "SnapshotFormatError",
    "PayloadFormatError",
    "ConfigurationError",
    "SurveyError",
    "SurveyNotFoundError",
    "ExternalServiceError",
    "SurveyFetchError",
]
