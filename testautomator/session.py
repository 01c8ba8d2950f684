"""Form session: the state behind one suggestion form.

Holds the field values, the attached screenshot and the last result, and
guards against a second submission while one is still in flight.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from testautomator.data_uri import encode_image_file
from testautomator.errors import InvalidRequest, SubmissionInProgress
from testautomator.models.config import DEFAULT_URL
from testautomator.models.suggestion import SCREENSHOT_MESSAGE, SuggestionResponse
from testautomator.suggester import LocatorSuggester, build_request
from testautomator.validation import FormValidation, validate_form

logger = logging.getLogger(__name__)


class SuggestionSession:
    """Single-user form state around a LocatorSuggester."""

    def __init__(self, suggester: LocatorSuggester, default_url: str = DEFAULT_URL):
        self.suggester = suggester
        self.default_url = default_url
        self.url = default_url
        self.current_locator = ""
        self.screenshot: Optional[str] = None
        self.result: Optional[SuggestionResponse] = None
        self._busy = False
        # Bumped on reset so a result from an abandoned submission is dropped
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self._busy

    def validate(self) -> FormValidation:
        return validate_form(self.url, self.current_locator)

    def attach_screenshot(self, path: str | Path) -> str:
        """Encode an image file and attach it; non-image files are refused."""
        try:
            self.screenshot = encode_image_file(path)
        except ValueError as e:
            raise InvalidRequest({"screenshot": str(e)}) from e
        logger.debug("Attached screenshot from %s", path)
        return self.screenshot

    def attach_data_uri(self, data_uri: str) -> None:
        self.screenshot = data_uri

    def clear_screenshot(self) -> None:
        self.screenshot = None

    def reset(self) -> None:
        """Restore defaults and drop the screenshot and any result."""
        self.url = self.default_url
        self.current_locator = ""
        self.screenshot = None
        self.result = None
        self._generation += 1

    @contextmanager
    def _in_flight(self) -> Iterator[None]:
        if self._busy:
            raise SubmissionInProgress("A suggestion request is already in progress")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def submit(self) -> Optional[SuggestionResponse]:
        """Validate the form and run one suggestion request.

        Returns the response, or None when the form was reset while the
        request was in flight. Failures propagate as SuggestionError.
        """
        verdict = self.validate()
        if not verdict.ok:
            raise InvalidRequest(verdict.errors)
        if not self.screenshot:
            raise InvalidRequest({"screenshot": SCREENSHOT_MESSAGE})

        with self._in_flight():
            generation = self._generation
            self.result = None
            request = build_request(self.url, self.current_locator, self.screenshot)
            response = self.suggester.suggest_locator(request)

        if generation != self._generation:
            logger.info("Form was reset during the request; discarding result")
            return None
        self.result = response
        return response
