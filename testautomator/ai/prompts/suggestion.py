"""Prompts for the locator suggestion call."""

from __future__ import annotations

import json

from testautomator.models.suggestion import PromptPart

SUGGESTION_SYSTEM_PROMPT = """You are an expert in UI test automation. Given a screenshot of a web page and a CSS selector that a user wants to test, you analyze the selector and the screenshot and suggest alternative, more robust CSS selectors.

CRITICAL: Return ONLY valid JSON. No markdown fences, no comments, no text before or after the JSON object.

Return exactly this JSON structure:

{"suggestedLocators": ["#loginBtn", "[data-testid='login']"], "reasoning": "brief explanation"}

Fields:
- suggestedLocators: array of strings, each one a CSS selector, best first
- reasoning: a short explanation of why each suggestion is better than the original"""

LOCATOR_GUIDELINES = (
    "Use specific and descriptive class names or IDs.",
    "Avoid fragile locators that rely on text content or positional information.",
    "Prioritize locators that are unlikely to change over time.",
)


def build_system_prompt(output_schema: dict | None = None) -> str:
    """Append the required reply schema to the system prompt when one is given."""
    if not output_schema:
        return SUGGESTION_SYSTEM_PROMPT
    return (
        f"{SUGGESTION_SYSTEM_PROMPT}\n\n"
        f"The reply must validate against this JSON schema:\n"
        f"{json.dumps(output_schema, indent=2)}"
    )


def build_suggestion_prompt(
    current_locator: str,
    screenshot: str,
    guidelines: tuple[str, ...] | list[str] = LOCATOR_GUIDELINES,
) -> list[PromptPart]:
    """Build the user message parts: screenshot, locator, then guidelines.

    The locator is substituted verbatim. The screenshot data URI becomes a
    media part placed where the image belongs in the text.
    """
    guideline_text = "\n".join(f"*   {g}" for g in guidelines)
    return [
        PromptPart(text="Here is the screenshot:"),
        PromptPart(media_url=screenshot),
        PromptPart(
            text=(
                f"Here is the current CSS selector:\n{current_locator}\n\n"
                f"Consider the following best practices when suggesting alternative locators:\n"
                f"{guideline_text}\n\n"
                f"Respond with an array of suggested CSS selectors, and a short explanation "
                f"of why each suggestion is better than the original.\n"
                f"Ensure that suggestedLocators is an array of strings.\n"
                f"Return your answer as a single JSON object."
            )
        ),
    ]
