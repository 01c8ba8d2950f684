"""Claude API client wrapper used for locator suggestions."""

from __future__ import annotations

import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import anthropic

from testautomator.ai.prompts.suggestion import build_system_prompt
from testautomator.data_uri import split_data_uri
from testautomator.errors import ContractViolation, ServiceUnavailable
from testautomator.models.suggestion import PromptPart

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

# Exchange logs are only written once a directory has been configured
_debug_dir: Path | None = None


def set_debug_dir(path: Path | str | None) -> None:
    """Set (or clear, with None) the directory for dumping AI exchanges."""
    global _debug_dir
    if path is None:
        _debug_dir = None
        return
    _debug_dir = Path(path)
    _debug_dir.mkdir(parents=True, exist_ok=True)


def _get_debug_dir() -> Path | None:
    return _debug_dir


class ModelClient(Protocol):
    """Anything that can submit a rendered instruction and return a parsed reply.

    Implementations raise ServiceUnavailable for transport failures and
    ContractViolation when the reply cannot be read as a JSON object.
    """

    def submit(self, parts: Sequence[PromptPart], output_schema: dict) -> dict[str, Any]:
        ...


class AIClient:
    """Wrapper around the Anthropic Claude API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        timeout: float = 120.0,
        temperature: float = 0.2,
    ):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Please set it before requesting suggestions."
            )
        # One outbound call per suggestion: the SDK must not retry on its own
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def submit(self, parts: Sequence[PromptPart], output_schema: dict) -> dict[str, Any]:
        """Send the instruction with the required output shape and parse the reply."""
        system_prompt = build_system_prompt(output_schema)
        text = self.complete_with_parts(system_prompt, parts)
        try:
            return self._parse_json_response(text)
        except ValueError as e:
            raise ContractViolation(str(e)) from e

    def complete_with_parts(
        self,
        system_prompt: str,
        parts: Sequence[PromptPart],
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send text and inline images, in order, as one user message."""
        self._call_count += 1
        tokens = max_tokens or self.max_tokens
        content = [self._to_content_block(p) for p in parts]
        logger.info(
            "Calling AI (call #%d, model=%s, max_tokens=%d, %d parts)...",
            self._call_count, self.model, tokens, len(content),
        )

        try:
            call_start = time.time()
            response = self.client.messages.create(
                model=self.model,
                max_tokens=tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            self._save_exchange_log(self._call_count, system_prompt, parts, "", str(e))
            raise ServiceUnavailable(f"Model endpoint failed: {e}") from e

        call_duration = time.time() - call_start
        text_blocks = [
            b.text for b in (response.content or []) if isinstance(getattr(b, "text", None), str)
        ]
        if not text_blocks:
            self._save_exchange_log(self._call_count, system_prompt, parts, "", "no text content")
            raise ContractViolation("AI response contained no text content")
        text = text_blocks[0]
        logger.info("AI response received in %.1fs (%d chars)", call_duration, len(text))

        if response.stop_reason == "max_tokens":
            logger.warning(
                "AI response was truncated! Hit max_tokens limit (%d). "
                "Consider increasing ai_max_tokens in config.",
                tokens,
            )

        self._save_exchange_log(self._call_count, system_prompt, parts, text, None)
        return text

    @staticmethod
    def _to_content_block(part: PromptPart) -> dict[str, Any]:
        if not part.is_media:
            return {"type": "text", "text": part.text}
        try:
            media_type, data = split_data_uri(part.media_url)
        except ValueError as e:
            # Requests are validated upstream; a bad URI here is a caller bug
            raise ValueError(f"Cannot embed media part: {e}") from e
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }

    # ------------------------------------------------------------------
    # JSON parsing with LLM quirk handling
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_json_response(text: str) -> dict[str, Any]:
        """Parse AI response as a JSON object, handling common LLM output quirks."""
        text = text.strip()

        fence_pattern = re.compile(
            r'^```(?:json|javascript|)?\s*\n(.*?)\n```\s*$',
            re.DOTALL | re.MULTILINE
        )
        match = fence_pattern.search(text)
        if match:
            text = match.group(1).strip()
            logger.debug("Stripped markdown code fences from AI response")

        # Attempt 1: as-is (strict=False tolerates raw control chars)
        try:
            data = json.loads(text, strict=False)
        except json.JSONDecodeError:
            data = None

        if data is None:
            # Attempt 2: drop trailing commas and surrounding prose
            cleaned = re.sub(r',\s*([}\]])', r'\1', text)
            first_brace = cleaned.find('{')
            last_brace = cleaned.rfind('}')
            if first_brace != -1 and last_brace > first_brace:
                cleaned = cleaned[first_brace:last_brace + 1]
            try:
                data = json.loads(cleaned, strict=False)
            except json.JSONDecodeError as e:
                logger.error("Failed to parse AI response as JSON: %s", e)
                logger.debug("Raw response (first 500 chars): %s", text[:500])
                raise ValueError(f"AI returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"AI returned JSON {type(data).__name__}, expected an object")
        return data

    # ------------------------------------------------------------------
    # Debug logging
    # ------------------------------------------------------------------

    @staticmethod
    def _save_exchange_log(
        call_number: int,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_text: str,
        error: str | None,
    ) -> None:
        """Save the full AI exchange to the debug directory, if one is set."""
        debug_dir = _get_debug_dir()
        if debug_dir is None:
            return
        try:
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = debug_dir / f"ai_call_{ts}_{call_number:03d}.log"
            user_lines = []
            for part in parts:
                if part.is_media:
                    # Keep the image payload out of the log
                    user_lines.append(f"[IMAGE ATTACHED: {len(part.media_url)} chars]")
                else:
                    user_lines.append(part.text)
            user_message = "\n".join(user_lines)

            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
                f.write(f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n")
                f.write(system_prompt)
                f.write(f"\n\n=== USER MESSAGE ({len(user_message)} chars) ===\n")
                f.write(user_message)
                f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text if response_text else "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")

            logger.debug("AI exchange logged to %s", log_file)
        except OSError as log_err:
            logger.debug("Failed to save AI exchange log: %s", log_err)
