"""Test utilities and fixtures for ArtGate tests."""

import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from artgate.config import ApplicationConfig
from artgate.main import create_app
from artgate.models import GenerationRequest, ObjectInfo, StoredObject
from artgate.services import (
    BudgetLedger,
    FileSystemObjectStore,
    ObjectStore,
    RateLimiter,
    build_services,
)

TEST_HOST = "testserver"
TEST_BASE_URL = f"http://{TEST_HOST}"
TEST_API_KEY = "test-gateway-secret"


class FakeClock:
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, start: float = 1_705_312_800.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def as_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.now, timezone.utc)


class FakeCounterStore:
    """In-memory stand-in for RedisClient's counter operations."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.clock = clock or FakeClock()
        self.values: Dict[str, int] = {}
        self.expiry: Dict[str, float] = {}
        self.connected = False
        self.fail_reads = False
        self.fail_writes = False

    def _expire(self, key: str) -> None:
        if key in self.expiry and self.expiry[key] <= self.clock():
            self.values.pop(key, None)
            self.expiry.pop(key, None)

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def increment_window(self, key: str, expire_at: int) -> int:
        self._expire(key)
        self.values[key] = self.values.get(key, 0) + 1
        self.expiry[key] = expire_at
        return self.values[key]

    async def increment_by(self, key: str, amount: int, ttl: int) -> int:
        if self.fail_writes:
            raise ConnectionError("counter store unavailable")
        self._expire(key)
        self.values[key] = self.values.get(key, 0) + amount
        self.expiry[key] = self.clock() + ttl
        return self.values[key]

    async def get_int(self, key: str) -> int:
        if self.fail_reads:
            raise ConnectionError("counter store unavailable")
        self._expire(key)
        return self.values.get(key, 0)


class FakeGenerator:
    """Generation client double that returns distinct JPEG-ish payloads."""

    def __init__(self) -> None:
        self.prompts: List[str] = []
        self.error: Optional[BaseException] = None
        self.payload_size: Optional[int] = None

    async def generate(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.payload_size is not None:
            return b"\xff" * self.payload_size
        return b"\xff\xd8\xff\xe0" + f"image-{len(self.prompts)}:{prompt}".encode("utf-8")

    @property
    def calls(self) -> int:
        return len(self.prompts)


class InMemoryObjectStore(ObjectStore):
    """Dictionary-backed object store for pipeline tests."""

    def __init__(self) -> None:
        self.objects: Dict[str, StoredObject] = {}
        self.fail_keys: Tuple[str, ...] = ()

    async def put(self, key: str, data: bytes, content_type: str, cache_control: str) -> ObjectInfo:
        if key in self.fail_keys or any(key.startswith(p) for p in self.fail_keys if p.endswith("/")):
            raise OSError(f"write refused for {key}")
        stored = StoredObject(
            key=key,
            size=len(data),
            uploaded_at=datetime.now(timezone.utc),
            content=data,
            content_type=content_type,
            cache_control=cache_control,
            etag='"test"',
        )
        self.objects[key] = stored
        return ObjectInfo(key=key, size=stored.size, uploaded_at=stored.uploaded_at)

    async def get(self, key: str) -> Optional[StoredObject]:
        return self.objects.get(key)

    async def list(self, prefix: str = "") -> List[ObjectInfo]:
        return [
            ObjectInfo(key=o.key, size=o.size, uploaded_at=o.uploaded_at)
            for o in self.objects.values()
            if o.key.startswith(prefix)
        ]


@pytest.fixture
def mock_config(tmp_path) -> ApplicationConfig:
    """Configuration isolated from the environment and .env files."""
    return ApplicationConfig(
        _env_file=None,
        redis_url=None,
        redis_token=None,
        gateway_api_key=TEST_API_KEY,
        art_storage_dir=str(tmp_path / "art-store"),
        public_base_url=None,
        client_ip_header="X-Test-Client-IP",
        stability_api_key="sk-test",
        stability_api_url="https://provider.test",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_counter_store(fake_clock) -> FakeCounterStore:
    return FakeCounterStore(fake_clock)


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def fs_store(mock_config) -> FileSystemObjectStore:
    return FileSystemObjectStore.from_config(mock_config)


@pytest.fixture
def make_request() -> Callable[..., GenerationRequest]:
    """Factory for pipeline requests; same-origin by default."""

    def factory(
        prompt: Any = "cyberpunk cityscape at night",
        body: Optional[bytes] = None,
        **overrides: Any,
    ) -> GenerationRequest:
        raw = body if body is not None else json.dumps({"prompt": prompt}).encode("utf-8")

        async def read_body() -> bytes:
            return raw

        fields: Dict[str, Any] = {
            "read_body": read_body,
            "content_length": len(raw),
            "client_ip": "203.0.113.7",
            "api_key": None,
            "origin": TEST_BASE_URL,
            "referer": None,
            "host": TEST_HOST,
            "base_url": TEST_BASE_URL,
        }
        fields.update(overrides)
        return GenerationRequest(**fields)

    return factory


def build_test_app(config, generator, object_store=None, counter_store=None):
    services = build_services(
        config,
        generator=generator,
        object_store=object_store or FileSystemObjectStore.from_config(config),
        redis_client=counter_store,
    )
    return create_app(config, services=services), services


@pytest_asyncio.fixture
async def test_client(mock_config, fake_generator) -> AsyncGenerator[AsyncClient, None]:
    """Async client for an app with rate limiting disabled."""
    app, _ = build_test_app(mock_config, fake_generator)
    async with AsyncClient(transport=ASGITransport(app=app), base_url=TEST_BASE_URL) as client:
        yield client


@pytest_asyncio.fixture
async def limited_client(
    mock_config, fake_generator, fake_counter_store, fake_clock
) -> AsyncGenerator[Tuple[AsyncClient, Any], None]:
    """Async client for an app with the in-memory counter store attached."""
    app, services = build_test_app(mock_config, fake_generator, counter_store=fake_counter_store)
    # Pin the windows and the ledger date to the fake clock.
    services.pipeline.rate_limiter = RateLimiter(mock_config, fake_counter_store, clock=fake_clock)
    services.pipeline.budget_ledger = BudgetLedger(
        mock_config, fake_counter_store, clock=fake_clock.as_datetime
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url=TEST_BASE_URL) as client:
        yield client, services
