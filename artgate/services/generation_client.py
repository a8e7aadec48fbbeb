"""Image generation client for ArtGate.

This module talks to the Stability AI text-to-image REST API. The HTTP call
is blocking (requests) and runs in the event loop's default executor; every
failure surfaces as a ProviderError carrying a structured kind.
"""

import asyncio
import base64
import binascii
from collections import namedtuple
from typing import Any, Dict, Optional

import requests

from ..config import ApplicationConfig
from ..models import ProviderError, ProviderErrorKind
from ..utils import create_contextual_logger

# Result object passed from the worker thread back to the event loop
SyncGenerationResult = namedtuple("SyncGenerationResult", ["image", "error"])

STATUS_KINDS = {
    400: ProviderErrorKind.PROMPT_REJECTED,
    402: ProviderErrorKind.INSUFFICIENT_CREDITS,
    408: ProviderErrorKind.TIMEOUT,
    429: ProviderErrorKind.RATE_LIMITED,
    504: ProviderErrorKind.TIMEOUT,
}


def classify_failure_message(message: str) -> ProviderErrorKind:
    """Last-resort categorization of an unstructured provider failure."""
    text = (message or "").lower()
    if "insufficient_credits" in text or "insufficient credits" in text or "402" in text:
        return ProviderErrorKind.INSUFFICIENT_CREDITS
    if "timeout" in text or "timed out" in text or "etimedout" in text:
        return ProviderErrorKind.TIMEOUT
    if "rate_limit" in text or "rate limit" in text or "429" in text:
        return ProviderErrorKind.RATE_LIMITED
    if "invalid_prompt" in text or "400" in text:
        return ProviderErrorKind.PROMPT_REJECTED
    return ProviderErrorKind.UNKNOWN


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        return None


def _response_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("name") or payload.get("message") or payload)[:200]
    return str(payload)[:200]


class GenerationClient:
    """Stability AI text-to-image client."""

    def __init__(self, config: ApplicationConfig) -> None:
        self.config = config
        self.logger = create_contextual_logger(__name__, service="generation_client")

    @property
    def endpoint(self) -> str:
        return (
            f"{self.config.stability_api_url}/v1/generation/"
            f"{self.config.stability_engine}/text-to-image"
        )

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "text_prompts": [{"text": prompt}],
            "cfg_scale": self.config.cfg_scale,
            "height": self.config.image_height,
            "width": self.config.image_width,
            "steps": self.config.steps,
            "samples": 1,
        }

    def decode_artifact(self, data: Any) -> bytes:
        """Extract the first image from a provider response body."""
        try:
            artifact = data["artifacts"][0]
        except (KeyError, IndexError, TypeError):
            raise ProviderError(ProviderErrorKind.UNKNOWN, "response contained no artifacts")

        if artifact.get("finishReason") == "CONTENT_FILTERED":
            raise ProviderError(ProviderErrorKind.PROMPT_REJECTED, "output was content filtered")

        try:
            return base64.b64decode(artifact["base64"], validate=True)
        except (KeyError, TypeError, binascii.Error):
            raise ProviderError(ProviderErrorKind.UNKNOWN, "artifact was not valid base64")

    def _execute_sync_request(self, prompt: str) -> SyncGenerationResult:
        """Executes the blocking HTTP call and returns a result object."""
        headers = {
            "Authorization": f"Bearer {self.config.stability_api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"ArtGate/{self.config.app_version}",
        }
        try:
            with requests.Session() as session:
                response = session.post(
                    self.endpoint,
                    json=self.build_payload(prompt),
                    headers=headers,
                    timeout=self.config.generation_timeout,
                )
        except requests.exceptions.Timeout as e:
            return SyncGenerationResult(None, ProviderError(ProviderErrorKind.TIMEOUT, str(e)))
        except requests.exceptions.RequestException as e:
            return SyncGenerationResult(None, ProviderError(classify_failure_message(str(e)), str(e)))

        if response.status_code >= 400:
            kind = STATUS_KINDS.get(response.status_code)
            detail = _response_detail(response)
            if kind is None:
                kind = classify_failure_message(f"{response.status_code} {detail}")
            return SyncGenerationResult(
                None,
                ProviderError(
                    kind,
                    f"HTTP {response.status_code}: {detail}",
                    retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                ),
            )

        try:
            data = response.json()
        except ValueError:
            return SyncGenerationResult(
                None, ProviderError(ProviderErrorKind.UNKNOWN, "response was not JSON")
            )

        try:
            return SyncGenerationResult(self.decode_artifact(data), None)
        except ProviderError as e:
            return SyncGenerationResult(None, e)

    async def generate(self, prompt: str) -> bytes:
        """Generate one image for ``prompt``.

        Raises:
            ProviderError: on any provider or transport failure.
        """
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self._execute_sync_request, prompt)
        except Exception as e:
            # Anything the request path did not categorize itself.
            result = SyncGenerationResult(None, ProviderError(classify_failure_message(str(e)), str(e)))
        if result.error:
            self.logger.error(
                "Image generation failed",
                serviceName="GenerationClient",
                operationName="generate",
                kind=result.error.kind.value,
                detail=result.error.detail,
            )
            raise result.error
        return result.image
