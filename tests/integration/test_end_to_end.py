"""End-to-end integration tests for the ArtGate system."""

import base64
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from artgate.main import create_app
from artgate.services import BudgetLedger, RateLimiter, build_services

SAME_ORIGIN = {"Origin": "http://testserver"}


def stability_response(image: bytes) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.headers = {}
    response.json.return_value = {
        "artifacts": [{"base64": base64.b64encode(image).decode("ascii"), "finishReason": "SUCCESS"}]
    }
    return response


class TestEndToEndIntegration:
    """
    Full request flow through the real generation client, the filesystem
    object store and the pipeline. Only the provider HTTP session and the
    counter store are doubles.
    """

    @pytest.fixture
    def provider_session(self):
        with patch("artgate.services.generation_client.requests.Session") as session_cls:
            yield session_cls.return_value.__enter__.return_value

    @pytest.fixture
    def gateway(self, mock_config, fake_counter_store, fake_clock):
        services = build_services(mock_config, redis_client=fake_counter_store)
        services.pipeline.rate_limiter = RateLimiter(mock_config, fake_counter_store, clock=fake_clock)
        services.pipeline.budget_ledger = BudgetLedger(
            mock_config, fake_counter_store, clock=fake_clock.as_datetime
        )
        return create_app(mock_config, services=services), services

    @pytest.mark.asyncio
    async def test_sequential_generations(self, gateway: Any, provider_session: Any) -> None:
        """Latest always mirrors the newest history object."""
        app, services = gateway
        images = [b"\xff\xd8\xff\xe0" + f"frame-{i}".encode() for i in range(4)]
        provider_session.post.side_effect = [stability_response(image) for image in images]

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            history_paths = []
            for i, image in enumerate(images):
                response = await client.post(
                    "/api/generate", json={"prompt": f"lighthouse number {i}"}, headers=SAME_ORIGIN
                )
                assert response.status_code == 200
                history_paths.append(response.json()["historyUrl"].replace("http://testserver", ""))

                latest = await client.get("/art/latest.jpg")
                assert latest.content == image

            for path, image in zip(history_paths, images):
                assert (await client.get(path)).content == image

            listing = (await client.get("/api/history")).json()["items"]
            assert [item["key"] for item in listing] == [p.lstrip("/") for p in reversed(history_paths)]

        await services.pipeline.wait_for_pending()
        assert await services.pipeline.budget_ledger.spent_today() == Decimal("0.016")

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_store_untouched(self, gateway: Any, provider_session: Any) -> None:
        app, services = gateway
        failed = MagicMock(status_code=402, headers={}, text="")
        failed.json.return_value = {"name": "insufficient_credits", "message": "balance is zero"}
        provider_session.post.return_value = failed

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.post("/api/generate", json={"prompt": "a lighthouse"}, headers=SAME_ORIGIN)

            assert response.status_code == 402
            assert response.json()["error"] == "insufficient_credits"
            assert (await client.get("/art/latest.jpg")).status_code == 404

        await services.pipeline.wait_for_pending()
        assert await services.pipeline.budget_ledger.spent_today() == Decimal("0")

    @pytest.mark.asyncio
    async def test_lifespan_starts_and_drains_services(self, mock_config, fake_counter_store) -> None:
        services = build_services(mock_config, redis_client=fake_counter_store)
        app = create_app(mock_config, services=services)

        async with app.router.lifespan_context(app):
            assert fake_counter_store.connected is True
            assert app.state.services is services

        assert fake_counter_store.connected is False
