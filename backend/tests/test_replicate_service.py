import asyncio
import json

import pytest
from unittest.mock import patch, AsyncMock

from fivenews.services.replicate_service import (
    SDXL_VERSION,
    CartoonGenerationError,
    ReplicateAuthError,
    ReplicateCreditsError,
    ReplicateRateLimitError,
    ReplicateService,
    RequestQueue,
)

PREDICTION = {"id": "p1", "urls": {"get": "https://api.replicate.com/v1/predictions/p1"}}


class TestReplicateService:
    @pytest.fixture(autouse=True)
    def setup_service(self):
        self.service = ReplicateService(
            api_token="test-token",
            queue=RequestQueue(0, max_jitter_seconds=0),
            poll_interval=0,
            max_polls=3,
        )

    def test_build_input(self):
        payload = self.service.build_input("Storm hits coast")

        assert "showing: Storm hits coast," in payload["prompt"]
        assert payload["negative_prompt"].startswith("realistic, photographic")
        assert payload["num_inference_steps"] == 20
        assert payload["guidance_scale"] == 7.5
        assert (payload["width"], payload["height"]) == (512, 512)
        assert 0 <= payload["seed"] <= 999999

    @pytest.mark.asyncio
    async def test_create_prediction_sends_version(self):
        post = AsyncMock(return_value=(201, PREDICTION))
        with patch.object(self.service, "_post_prediction", post):
            prediction = await self.service.create_prediction("Storm hits coast")

        assert prediction == PREDICTION
        assert post.await_args.args[0]["version"] == SDXL_VERSION

    @pytest.mark.parametrize("status,error", [
        (402, ReplicateCreditsError),
        (429, ReplicateRateLimitError),
        (401, ReplicateAuthError),
        (500, CartoonGenerationError),
    ])
    @pytest.mark.asyncio
    async def test_create_prediction_errors(self, status, error):
        with patch.object(self.service, "_post_prediction", AsyncMock(return_value=(status, "nope"))):
            with pytest.raises(error):
                await self.service.create_prediction("Storm hits coast")

    @pytest.mark.asyncio
    async def test_wait_for_prediction_success(self):
        polls = AsyncMock(side_effect=[
            (200, {"status": "starting"}),
            (200, {"status": "succeeded", "output": ["https://replicate.delivery/out.png"]}),
        ])
        with patch.object(self.service, "_get_prediction", polls):
            url = await self.service.wait_for_prediction(PREDICTION)

        assert url == "https://replicate.delivery/out.png"

    @pytest.mark.asyncio
    async def test_wait_for_prediction_retries_transient_errors(self):
        polls = AsyncMock(side_effect=[
            asyncio.TimeoutError(),
            (502, "bad gateway"),
            (200, {"status": "succeeded", "output": "https://replicate.delivery/out.png"}),
        ])
        with patch.object(self.service, "_get_prediction", polls), \
                patch("fivenews.services.replicate_service.asyncio.sleep", AsyncMock()):
            url = await self.service.wait_for_prediction(PREDICTION)

        assert url == "https://replicate.delivery/out.png"
        assert polls.await_count == 3

    @pytest.mark.asyncio
    async def test_create_prediction_invalid_json(self):
        post = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        with patch.object(self.service, "_post_prediction", post):
            with pytest.raises(CartoonGenerationError, match="invalid JSON"):
                await self.service.create_prediction("Storm hits coast")

    @pytest.mark.asyncio
    async def test_wait_for_prediction_retries_invalid_json(self):
        polls = AsyncMock(side_effect=[
            json.JSONDecodeError("Expecting value", "<html>", 0),
            (200, "<html>maintenance</html>"),
            (200, {"status": "succeeded", "output": ["https://replicate.delivery/out.png"]}),
        ])
        with patch.object(self.service, "_get_prediction", polls):
            url = await self.service.wait_for_prediction(PREDICTION)

        assert url == "https://replicate.delivery/out.png"
        assert polls.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_for_prediction_auth_error(self):
        with patch.object(self.service, "_get_prediction", AsyncMock(return_value=(403, "forbidden"))):
            with pytest.raises(ReplicateAuthError):
                await self.service.wait_for_prediction(PREDICTION)

    @pytest.mark.asyncio
    async def test_wait_for_prediction_failed(self):
        with patch.object(self.service, "_get_prediction", AsyncMock(return_value=(200, {"status": "failed"}))):
            with pytest.raises(CartoonGenerationError, match="failed"):
                await self.service.wait_for_prediction(PREDICTION)

    @pytest.mark.asyncio
    async def test_wait_for_prediction_empty_output(self):
        polls = AsyncMock(return_value=(200, {"status": "succeeded", "output": []}))
        with patch.object(self.service, "_get_prediction", polls):
            with pytest.raises(CartoonGenerationError, match="without output"):
                await self.service.wait_for_prediction(PREDICTION)

    @pytest.mark.asyncio
    async def test_wait_for_prediction_times_out(self):
        polls = AsyncMock(return_value=(200, {"status": "processing"}))
        with patch.object(self.service, "_get_prediction", polls):
            with pytest.raises(CartoonGenerationError, match="timed out"):
                await self.service.wait_for_prediction(PREDICTION)

        assert polls.await_count == 3

    @pytest.mark.asyncio
    async def test_generate_image_requires_token(self):
        service = ReplicateService(api_token=None)
        with pytest.raises(ReplicateAuthError):
            await service.generate_image("Storm hits coast")


class TestRequestQueue:
    @pytest.mark.asyncio
    async def test_runs_one_at_a_time(self):
        queue = RequestQueue(0, max_jitter_seconds=0)
        running = 0
        peak = 0

        async def job(n):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0)
            running -= 1
            return n

        results = await asyncio.gather(*(queue.run(job, n) for n in range(3)))

        assert sorted(results) == [0, 1, 2]
        assert peak == 1

    @pytest.mark.asyncio
    async def test_waits_min_delay_between_requests(self):
        queue = RequestQueue(15, max_jitter_seconds=0)
        sleep = AsyncMock()

        async def job():
            return "ok"

        with patch("fivenews.services.replicate_service.asyncio.sleep", sleep):
            await queue.run(job)
            await queue.run(job)

        sleep.assert_awaited_once()
        assert 14 < sleep.await_args.args[0] <= 15
