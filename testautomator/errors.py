"""Failure types surfaced by the locator suggestion flow."""

from __future__ import annotations


class SuggestionError(Exception):
    """Base class for every failure the caller can see.

    ``reason`` is a short machine-readable tag the presentation layer can
    branch on; the message is meant for humans.
    """

    reason = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason)
        self.message = message or self.reason


class InvalidRequest(SuggestionError):
    """Input failed validation before anything was dispatched."""

    reason = "invalid_request"

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Invalid request")


class ServiceUnavailable(SuggestionError):
    """The model endpoint could not be reached or answered with an error."""

    reason = "service_unavailable"


class ContractViolation(SuggestionError):
    """The model replied, but not in the required output shape."""

    reason = "contract_violation"


class SubmissionInProgress(SuggestionError):
    reason = "busy"
