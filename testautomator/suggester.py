"""Locator suggestion service: one validated request, one model call."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from testautomator.ai.client import ModelClient
from testautomator.ai.prompts.suggestion import LOCATOR_GUIDELINES, build_suggestion_prompt
from testautomator.errors import (
    ContractViolation,
    InvalidRequest,
    ServiceUnavailable,
    SuggestionError,
)
from testautomator.models.suggestion import (
    SuggestionRequest,
    SuggestionResponse,
    output_schema,
    request_errors,
)

logger = logging.getLogger(__name__)


def build_request(url: str, current_locator: str, screenshot: str) -> SuggestionRequest:
    """Validate the three inputs and build a request, or raise InvalidRequest."""
    try:
        return SuggestionRequest(url=url, current_locator=current_locator, screenshot=screenshot)
    except ValidationError as e:
        raise InvalidRequest(request_errors(e)) from e


class LocatorSuggester:
    """Turns a SuggestionRequest into a SuggestionResponse via a ModelClient.

    No caching and no retries: every call to ``suggest_locator`` issues
    exactly one ``submit`` on the model client, and every failure is
    reported as a SuggestionError subclass.
    """

    def __init__(self, model_client: ModelClient, guidelines: tuple[str, ...] = LOCATOR_GUIDELINES):
        self.model_client = model_client
        self.guidelines = guidelines

    def suggest_locator(
        self, request: Union[SuggestionRequest, Mapping[str, Any]]
    ) -> SuggestionResponse:
        request = self._revalidate(request)
        logger.info("Requesting locator suggestions for %r on %s", request.current_locator, request.url)

        parts = build_suggestion_prompt(request.current_locator, request.screenshot, self.guidelines)
        reply = self._dispatch(parts)

        try:
            response = SuggestionResponse.model_validate(reply)
        except ValidationError as e:
            logger.error("AI reply did not match the required shape: %s", e)
            raise ContractViolation(f"AI reply did not match the required shape: {e}") from e

        logger.info("Received %d suggested locators", len(response.suggested_locators))
        logger.debug("Reasoning: %s", response.reasoning)
        return response

    def _dispatch(self, parts) -> Any:
        try:
            return self.model_client.submit(parts, output_schema())
        except SuggestionError as e:
            logger.error("Suggestion call failed (%s): %s", e.reason, e)
            raise
        except (OSError, TimeoutError) as e:
            # ConnectionError is an OSError subclass
            logger.error("Suggestion call failed (transport): %s", e)
            raise ServiceUnavailable(f"Model endpoint failed: {e}") from e

    @staticmethod
    def _revalidate(request: Union[SuggestionRequest, Mapping[str, Any]]) -> SuggestionRequest:
        if isinstance(request, SuggestionRequest):
            data = request.model_dump()
        elif isinstance(request, Mapping):
            data = dict(request)
        else:
            raise InvalidRequest({"request": f"Unsupported request type: {type(request).__name__}"})
        try:
            return SuggestionRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidRequest(request_errors(e)) from e


def suggest_locator(
    url: str,
    current_locator: str,
    screenshot: str,
    model_client: ModelClient,
) -> SuggestionResponse:
    """Validate the inputs, then ask the model for alternative locators."""
    request = build_request(url, current_locator, screenshot)
    return LocatorSuggester(model_client).suggest_locator(request)
