"""Request/response records exchanged with the suggestion service."""

from __future__ import annotations

from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from testautomator.data_uri import IMAGE_TYPE_MESSAGE, is_data_uri, is_supported_image_uri
from testautomator.validation import LOCATOR_MESSAGE, URL_MESSAGE, is_absolute_url, is_blank

SCREENSHOT_MESSAGE = "Please upload a screenshot of the page."


class SuggestionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    current_locator: str = Field(alias="currentLocator")
    screenshot: str = Field(alias="screenshotDataUri")

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        if not is_absolute_url(v):
            raise ValueError(URL_MESSAGE)
        return v

    @field_validator("current_locator")
    @classmethod
    def check_locator(cls, v: str) -> str:
        # The locator goes to the model verbatim; only blank values are refused
        if is_blank(v):
            raise ValueError(LOCATOR_MESSAGE)
        return v

    @field_validator("screenshot")
    @classmethod
    def check_screenshot(cls, v: str) -> str:
        if not v:
            raise ValueError(SCREENSHOT_MESSAGE)
        if not is_data_uri(v):
            raise ValueError(
                "Screenshot must be a data URI: 'data:<mimetype>;base64,<encoded_data>'"
            )
        if not is_supported_image_uri(v):
            raise ValueError(IMAGE_TYPE_MESSAGE)
        return v


class SuggestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True)

    suggested_locators: list[StrictStr] = Field(
        alias="suggestedLocators",
        description="An array of suggested alternative CSS selectors.",
    )
    reasoning: StrictStr = Field(description="The AI reasoning behind the suggestions.")

    @field_validator("suggested_locators", mode="before")
    @classmethod
    def ordered_sequence_to_list(cls, v):
        # Strict mode takes only lists; tuples are ordered too. Sets and strings stay rejected
        if isinstance(v, tuple):
            return list(v)
        return v

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class PromptPart(BaseModel):
    """One piece of a rendered instruction: either text or an inline media URL."""

    text: Optional[str] = None
    media_url: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one(self) -> "PromptPart":
        if (self.text is None) == (self.media_url is None):
            raise ValueError("PromptPart needs exactly one of text or media_url")
        return self

    @property
    def is_media(self) -> bool:
        return self.media_url is not None


_FIELD_NAMES = {
    "url": "url",
    "current_locator": "currentLocator",
    "currentLocator": "currentLocator",
    "screenshot": "screenshot",
    "screenshotDataUri": "screenshot",
}
_DEFAULT_MESSAGES = {
    "url": URL_MESSAGE,
    "currentLocator": LOCATOR_MESSAGE,
    "screenshot": SCREENSHOT_MESSAGE,
}


def request_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a SuggestionRequest ValidationError into one message per field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("request",)
        field = _FIELD_NAMES.get(str(loc[0]), str(loc[0]))
        if field in errors:
            continue
        if err.get("type") == "value_error" and "error" in err.get("ctx", {}):
            errors[field] = str(err["ctx"]["error"])
        else:
            errors[field] = _DEFAULT_MESSAGES.get(field, err.get("msg", "Invalid value"))
    return errors


def output_schema() -> dict:
    """JSON schema of the reply shape the model must produce."""
    return SuggestionResponse.model_json_schema(by_alias=True)
