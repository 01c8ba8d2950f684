"""Form input validation: URL and locator rules checked before dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlparse

URL_MESSAGE = "Please enter a valid URL."
LOCATOR_MESSAGE = "Locator cannot be empty."


@dataclass
class FormValidation:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def message_for(self, field_name: str) -> str | None:
        return self.errors.get(field_name)


def is_absolute_url(value: object) -> bool:
    """True when ``value`` parses as a URL with both a scheme and a host."""
    if not isinstance(value, str) or not value.strip():
        return False
    if any(ch.isspace() for ch in value.strip()):
        return False
    try:
        parsed = urlparse(value.strip())
        # Accessing .port raises on malformed authority, e.g. "http://host:abc"
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.hostname)


def is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_form(url: str, current_locator: str) -> FormValidation:
    """Check both form fields and collect a message per failing field."""
    result = FormValidation()
    if not is_absolute_url(url):
        result.errors["url"] = URL_MESSAGE
    if is_blank(current_locator):
        result.errors["currentLocator"] = LOCATOR_MESSAGE
    return result
