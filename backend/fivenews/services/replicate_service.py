# fivenews/services/replicate_service.py
"""
Cartoon generation through the Replicate predictions API
Requests are serialized through an in-process queue with a minimum spacing
"""
import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import aiohttp

from fivenews.config import REPLICATE_API_TOKEN, REPLICATE_MIN_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

REPLICATE_API_URL = "https://api.replicate.com/v1/predictions"
SDXL_VERSION = "39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"

REPLICATE_POLL_INTERVAL_SECONDS = 1
REPLICATE_MAX_POLLS = 60
REPLICATE_POLL_TIMEOUT_SECONDS = 5
REPLICATE_ERROR_BACKOFF_SECONDS = 2
REPLICATE_MAX_JITTER_SECONDS = 5

CARTOON_PROMPT = (
    "cartoon illustration, childlike drawing style, simple lines, bright vibrant colors, "
    "cute and friendly, showing: {key}, colorful background, fun and playful, "
    "kid-friendly art, simple clean composition, clear visual representation of the story"
)
NEGATIVE_PROMPT = "realistic, photographic, adult, complex, dark, scary, blurry, text, words, letters"


class CartoonGenerationError(Exception):
    """Replicate could not produce an image"""


class ReplicateCreditsError(CartoonGenerationError):
    """Account is out of credits (HTTP 402)"""


class ReplicateRateLimitError(CartoonGenerationError):
    """Replicate rejected the request with HTTP 429"""


class ReplicateAuthError(CartoonGenerationError):
    """Token missing, invalid or not permitted"""


class RequestQueue:
    """
    Runs coroutines one at a time, at least min_delay_seconds (plus jitter)
    after the previous one finished
    """

    def __init__(self, min_delay_seconds: float, max_jitter_seconds: float = REPLICATE_MAX_JITTER_SECONDS):
        self.min_delay_seconds = min_delay_seconds
        self.max_jitter_seconds = max_jitter_seconds
        self._lock = asyncio.Lock()
        self._last_finished: Optional[float] = None

    def _next_delay(self) -> float:
        if self._last_finished is None:
            return 0.0
        loop = asyncio.get_running_loop()
        jitter = random.uniform(0, self.max_jitter_seconds)
        ready_at = self._last_finished + self.min_delay_seconds + jitter
        return max(0.0, ready_at - loop.time())

    async def run(self, func: Callable[..., Awaitable[Any]], *args) -> Any:
        async with self._lock:
            delay = self._next_delay()
            if delay > 0:
                logger.info(f"Waiting {delay:.1f}s before next Replicate request")
                await asyncio.sleep(delay)
            try:
                return await func(*args)
            finally:
                self._last_finished = asyncio.get_running_loop().time()


replicate_queue = RequestQueue(REPLICATE_MIN_INTERVAL_SECONDS)


class ReplicateService:
    """Service for generating cartoon images"""

    def __init__(
        self,
        api_token: Optional[str] = REPLICATE_API_TOKEN,
        queue: Optional[RequestQueue] = None,
        poll_interval: float = REPLICATE_POLL_INTERVAL_SECONDS,
        max_polls: int = REPLICATE_MAX_POLLS,
    ):
        self.api_token = api_token
        self.queue = queue or replicate_queue
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.api_token}",
            "Content-Type": "application/json",
        }

    def build_input(self, key: str) -> Dict[str, Any]:
        return {
            "prompt": CARTOON_PROMPT.format(key=key),
            "negative_prompt": NEGATIVE_PROMPT,
            "num_inference_steps": 20,
            "guidance_scale": 7.5,
            "width": 512,
            "height": 512,
            "seed": random.randint(0, 999999),
        }

    async def _post_prediction(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        async with aiohttp.ClientSession() as session:
            async with session.post(REPLICATE_API_URL, json=payload, headers=self.headers) as response:
                if response.status >= 400:
                    return response.status, await response.text()
                return response.status, await response.json(content_type=None)

    async def _get_prediction(self, url: str) -> Tuple[int, Any]:
        timeout = aiohttp.ClientTimeout(total=REPLICATE_POLL_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers=self.headers) as response:
                if response.status >= 400:
                    return response.status, await response.text()
                return response.status, await response.json(content_type=None)

    async def create_prediction(self, key: str) -> Dict[str, Any]:
        """
        Start a prediction for a cartoon key

        Raises:
            ReplicateCreditsError: HTTP 402
            ReplicateRateLimitError: HTTP 429
            ReplicateAuthError: HTTP 401
            CartoonGenerationError: any other failure
        """
        payload = {"version": SDXL_VERSION, "input": self.build_input(key)}
        try:
            status, body = await self._post_prediction(payload)
        except ValueError as e:
            raise CartoonGenerationError(f"Replicate returned invalid JSON: {e}") from e

        if status == 402:
            raise ReplicateCreditsError("Replicate API credits exhausted")
        if status == 429:
            raise ReplicateRateLimitError("Replicate API rate limited")
        if status == 401:
            raise ReplicateAuthError("Replicate API token rejected")
        if status < 200 or status >= 300:
            raise CartoonGenerationError(f"Replicate API error: {status} - {body}")
        if not isinstance(body, dict):
            raise CartoonGenerationError("Replicate returned an unexpected prediction body")

        logger.info(f"Created prediction {body.get('id')}")
        return body

    async def wait_for_prediction(self, prediction: Dict[str, Any]) -> str:
        """Poll a prediction until it finishes and return the image URL"""
        poll_url = (prediction.get("urls") or {}).get("get")
        if not poll_url:
            raise CartoonGenerationError("Prediction has no polling URL")

        for attempt in range(1, self.max_polls + 1):
            await asyncio.sleep(self.poll_interval)

            # ValueError covers a 2xx body that is not JSON
            try:
                status, body = await self._get_prediction(poll_url)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning(f"Poll {attempt}/{self.max_polls} failed: {e}")
                continue

            if status in (401, 403):
                raise ReplicateAuthError(f"Replicate polling not permitted: {status}")
            if status >= 400:
                logger.warning(f"Poll {attempt}/{self.max_polls} returned HTTP {status}")
                await asyncio.sleep(REPLICATE_ERROR_BACKOFF_SECONDS)
                continue

            if not isinstance(body, dict):
                logger.warning(f"Poll {attempt}/{self.max_polls} returned an unexpected body")
                continue

            state = body.get("status")
            if state == "succeeded":
                output = body.get("output")
                if isinstance(output, list):
                    output = output[0] if output else None
                if not output:
                    raise CartoonGenerationError("Prediction succeeded without output")
                return output
            if state in ("failed", "canceled"):
                raise CartoonGenerationError(f"Prediction {state}: {body.get('error')}")

        raise CartoonGenerationError("Prediction timed out")

    async def _generate(self, key: str) -> str:
        prediction = await self.create_prediction(key)
        return await self.wait_for_prediction(prediction)

    async def generate_image(self, key: str) -> str:
        """Generate a cartoon for a cleaned headline, queued behind other requests"""
        if not self.is_configured:
            raise ReplicateAuthError("REPLICATE_API_TOKEN is not configured")
        return await self.queue.run(self._generate, key)
