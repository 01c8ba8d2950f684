"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import pytest

from testautomator.models.config import AdvisorConfig
from testautomator.models.suggestion import PromptPart, SuggestionRequest
from testautomator.suggester import LocatorSuggester

# 1x1 pixel PNG
PNG_BYTES = (
    b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01'
    b'\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde\x00\x00'
    b'\x00\x0cIDATx\x9cc\x00\x01\x00\x00\x05\x00\x01\r\n-'
    b'\xb4\x00\x00\x00\x00IEND\xaeB`\x82'
)

SCENARIO_REPLY = {
    "suggestedLocators": ["#loginBtn", "[data-testid=login]"],
    "reasoning": "ID is present but generic; prefer a test-id attribute.",
}


class FakeModelClient:
    """In-memory ModelClient that records every submission.

    ``reply`` is returned as-is; ``error`` is raised instead when set.
    ``on_submit`` runs inside the call, before the reply is returned.
    """

    def __init__(
        self,
        reply: Any = None,
        error: Optional[BaseException] = None,
        on_submit: Optional[Callable[[], None]] = None,
    ):
        self.reply = dict(SCENARIO_REPLY) if reply is None else reply
        self.error = error
        self.on_submit = on_submit
        self.calls: list[tuple[list[PromptPart], dict]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def submit(self, parts: Sequence[PromptPart], output_schema: dict) -> Any:
        self.calls.append((list(parts), output_schema))
        if self.on_submit is not None:
            self.on_submit()
        if self.error is not None:
            raise self.error
        return self.reply


# ============================================================================
# Request Fixtures
# ============================================================================


@pytest.fixture
def screenshot_uri() -> str:
    return "data:image/png;base64,AAAA"


@pytest.fixture
def request_data(screenshot_uri: str) -> dict:
    """Wire-shaped request from the login-button scenario."""
    return {
        "url": "https://dev-dash.janitri.in/",
        "currentLocator": "#login-button",
        "screenshotDataUri": screenshot_uri,
    }


@pytest.fixture
def suggestion_request(request_data: dict) -> SuggestionRequest:
    return SuggestionRequest.model_validate(request_data)


# ============================================================================
# Model Client Fixtures
# ============================================================================


@pytest.fixture
def fake_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def make_client() -> type[FakeModelClient]:
    """The FakeModelClient class, for tests that need a custom reply or error."""
    return FakeModelClient


@pytest.fixture
def suggester(fake_client: FakeModelClient) -> LocatorSuggester:
    return LocatorSuggester(fake_client)


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """A real PNG screenshot on disk."""
    path = tmp_path / "screenshot.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text("not an image")
    return path


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    config_path = tmp_path / "testautomator.json"
    AdvisorConfig(default_url="https://example.com/").save(config_path)
    return config_path
