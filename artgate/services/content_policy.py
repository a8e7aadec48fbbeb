"""Prompt validation and content filtering."""

from typing import Any, Iterable, Optional, Tuple

from ..models import ErrorKind, GatewayError


class ContentPolicy:
    """Length bounds plus a case-insensitive substring denylist."""

    def __init__(self, min_length: int, max_length: int, blocked_words: Iterable[str]) -> None:
        self.min_length = min_length
        self.max_length = max_length
        self.blocked_words: Tuple[str, ...] = tuple(w.lower() for w in blocked_words if w)

    def validate_prompt(self, raw: Any) -> str:
        """Trim and length-check a prompt, returning the trimmed text."""
        prompt = raw.strip() if isinstance(raw, str) else ""

        if len(prompt) < self.min_length:
            raise GatewayError(
                ErrorKind.INVALID_PROMPT,
                f"Prompt must be at least {self.min_length} characters",
            )
        if len(prompt) > self.max_length:
            raise GatewayError(
                ErrorKind.PROMPT_TOO_LONG,
                f"Prompt must be less than {self.max_length} characters",
            )
        return prompt

    def find_blocked_word(self, prompt: str) -> Optional[str]:
        lowered = prompt.lower()
        for word in self.blocked_words:
            if word in lowered:
                return word
        return None

    def check_content(self, prompt: str) -> None:
        if self.find_blocked_word(prompt) is not None:
            raise GatewayError(ErrorKind.INAPPROPRIATE_PROMPT)
