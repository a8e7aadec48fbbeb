"""Admission and fulfillment pipeline for ArtGate.

One inbound generation request runs through these stages in order; the
first failing stage ends the run with its GatewayError:

1. declared size cap
2. authentication (same-origin or shared secret)
3. per-caller window, global window, then the daily budget
   (only when a counter store is configured)
4. JSON body parsing
5. prompt trimming and length bounds
6. content denylist
7. generation, with an output size ceiling
8. ledger update (background, best-effort)
9. concurrent history + latest writes
10. response with both artifact URLs

Stage 3 consumes rate-limit quota even when the budget check then fails.
"""

import asyncio
import hmac
import json
import time
from typing import Any, Optional, Protocol, Set
from urllib.parse import urlsplit

from ..config import ApplicationConfig
from ..models import (
    ErrorKind,
    GatewayError,
    GenerateResponse,
    GenerationRequest,
    ProviderError,
    gateway_error_from_provider,
)
from ..utils import create_contextual_logger, log_exception
from . import metrics
from .budget_ledger import BudgetLedger
from .content_policy import ContentPolicy
from .object_store import ObjectStore, history_key
from .rate_limiter import RateLimiter


class ImageGenerator(Protocol):
    async def generate(self, prompt: str) -> bytes:
        ...


def _host_of(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    try:
        netloc = urlsplit(header_value).netloc
    except ValueError:
        return None
    return netloc.lower() or None


class GenerationPipeline:
    """Runs the full request lifecycle for ``POST /api/generate``."""

    def __init__(
        self,
        config: ApplicationConfig,
        generator: ImageGenerator,
        object_store: ObjectStore,
        rate_limiter: Optional[RateLimiter] = None,
        budget_ledger: Optional[BudgetLedger] = None,
    ) -> None:
        self.config = config
        self.generator = generator
        self.object_store = object_store
        self.rate_limiter = rate_limiter
        self.budget_ledger = budget_ledger
        self.content_policy = ContentPolicy(
            config.min_prompt_length,
            config.max_prompt_length,
            config.blocked_words,
        )
        self.logger = create_contextual_logger(__name__, service="generation_pipeline")
        self._pending: Set[asyncio.Task] = set()

    @property
    def rate_limiting_enabled(self) -> bool:
        return self.rate_limiter is not None

    async def handle_generate(self, request: GenerationRequest) -> GenerateResponse:
        """Admit, generate, persist and describe one image."""
        try:
            response = await self._run(request)
        except GatewayError as e:
            metrics.generation_requests.labels(outcome=e.kind.value).inc()
            self.logger.info(
                "Generation request rejected",
                serviceName="GenerationPipeline",
                operationName="handleGenerate",
                error=e.kind.value,
                client_ip=request.client_ip,
            )
            raise
        except Exception:
            metrics.generation_requests.labels(outcome=ErrorKind.GENERATION_FAILED.value).inc()
            raise
        metrics.generation_requests.labels(outcome="success").inc()
        return response

    async def _run(self, request: GenerationRequest) -> GenerateResponse:
        self.check_declared_size(request.content_length)
        self.authenticate(request)
        await self.admit(request.client_ip)

        body = await self.parse_body(request)
        prompt = self.content_policy.validate_prompt(
            body.get("prompt") if isinstance(body, dict) else None
        )
        self.content_policy.check_content(prompt)

        image = await self.generate(prompt)
        self.schedule_spend_update()
        key = await self.persist(image)

        self.logger.info(
            "Generation completed",
            serviceName="GenerationPipeline",
            operationName="handleGenerate",
            history_key=key,
            size=len(image),
        )
        return GenerateResponse(
            latest_url=f"{request.base_url}/{self.config.latest_key}",
            history_url=f"{request.base_url}/{key}",
            prompt=prompt,
        )

    def check_declared_size(self, content_length: Optional[int]) -> None:
        if content_length is not None and content_length > self.config.max_request_size:
            raise GatewayError(ErrorKind.REQUEST_TOO_LARGE)

    def is_same_origin(self, request: GenerationRequest) -> bool:
        host = request.host.lower()
        return host in (_host_of(request.origin), _host_of(request.referer))

    def has_valid_api_key(self, presented: Optional[str]) -> bool:
        expected = self.config.gateway_api_key
        if not expected or not presented:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))

    def authenticate(self, request: GenerationRequest) -> None:
        if self.is_same_origin(request) or self.has_valid_api_key(request.api_key):
            return
        raise GatewayError(ErrorKind.UNAUTHORIZED)

    async def admit(self, client_ip: str) -> None:
        """Per-caller window, global window, then the daily budget."""
        if self.rate_limiter is None:
            return

        caller = await self.rate_limiter.check_caller(client_ip)
        if not caller.success:
            raise GatewayError(
                ErrorKind.RATE_LIMIT_EXCEEDED,
                headers={
                    "X-RateLimit-Limit": str(caller.limit),
                    "X-RateLimit-Remaining": str(caller.remaining),
                    "X-RateLimit-Reset": str(caller.reset),
                },
            )

        overall = await self.rate_limiter.check_global()
        if not overall.success:
            raise GatewayError(ErrorKind.GLOBAL_RATE_LIMIT_EXCEEDED)

        if self.budget_ledger is not None and await self.budget_ledger.is_exhausted():
            raise GatewayError(
                ErrorKind.DAILY_BUDGET_EXCEEDED,
                f"Daily spending cap of ${self.config.daily_spending_cap} reached. "
                "Resets at midnight UTC.",
            )

    async def parse_body(self, request: GenerationRequest) -> Any:
        body = await request.read_body()
        if len(body) > self.config.max_request_size:
            raise GatewayError(ErrorKind.REQUEST_TOO_LARGE)
        try:
            return json.loads(body)
        except (ValueError, RecursionError):
            raise GatewayError(ErrorKind.INVALID_JSON)

    async def generate(self, prompt: str) -> bytes:
        started = time.monotonic()
        try:
            image = await self.generator.generate(prompt)
        except ProviderError as e:
            raise gateway_error_from_provider(e)
        except Exception as e:
            log_exception(self.logger, e, "Unexpected generation failure")
            raise GatewayError(ErrorKind.GENERATION_FAILED)
        finally:
            metrics.generation_duration.observe(time.monotonic() - started)

        if len(image) > self.config.max_image_bytes:
            self.logger.warning(
                "Generated image exceeds size limit",
                size=len(image),
                limit=self.config.max_image_bytes,
            )
            raise GatewayError(ErrorKind.IMAGE_TOO_LARGE)
        return image

    def schedule_spend_update(self) -> None:
        """Record this generation's cost without holding up the response."""
        if self.budget_ledger is None:
            return
        task = asyncio.create_task(self._record_spend(self.budget_ledger))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_spend(self, ledger: BudgetLedger) -> None:
        try:
            await ledger.record_generation()
            metrics.spend_recorded.inc(ledger.cost_micro)
        except Exception as e:
            log_exception(self.logger, e, "Failed to record generation spend")

    async def wait_for_pending(self) -> None:
        """Wait for background ledger updates to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def persist(self, image: bytes) -> str:
        """Write history and latest copies concurrently; both must succeed."""
        key = history_key(prefix=self.config.art_prefix)
        results = await asyncio.gather(
            self.object_store.put(
                key,
                image,
                self.config.image_content_type,
                self.config.history_cache_control,
            ),
            self.object_store.put(
                self.config.latest_key,
                image,
                self.config.image_content_type,
                self.config.latest_cache_control,
            ),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures:
                log_exception(self.logger, failure, "Failed to store artifact", history_key=key)
            raise GatewayError(ErrorKind.GENERATION_FAILED)
        return key
