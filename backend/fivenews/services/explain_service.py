# fivenews/services/explain_service.py
import logging
from typing import Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import AsyncOpenAI, OpenAIError

from fivenews.config import (
    EXPLAIN_PROVIDER,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    OPENAI_API_KEY,
    OPENAI_MODEL,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that explains complex news stories in simple terms "
    "that a 5-year-old child would understand. Use simple language, avoid jargon, "
    "and make it engaging and friendly."
)

USER_PROMPT = """Explain this news story to me like I'm 5 years old. Keep it simple, friendly, and easy to understand.

Title: {title}
Content: {content}

Please provide a simple explanation that a 5-year-old would understand:"""

FALLBACK_EXPLANATION = "Unable to generate explanation"
MAX_TOKENS = 300
TEMPERATURE = 0.7


class ExplainError(Exception):
    """The language model call failed or is not configured"""


class ExplainService:
    """Service for kid-friendly explanations using OpenAI or Gemini"""

    def __init__(self, provider: str = EXPLAIN_PROVIDER):
        self.provider = (provider or "openai").lower()
        self._client = None

    @property
    def client(self):
        """Created on first use so a missing key only fails the request"""
        if self._client is not None:
            return self._client

        if self.provider == "gemini":
            if not GEMINI_API_KEY:
                raise ExplainError("GEMINI_API_KEY is not set")
            self._client = genai.Client(api_key=GEMINI_API_KEY)
        else:
            if not OPENAI_API_KEY:
                raise ExplainError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=OPENAI_API_KEY)
        return self._client

    async def _explain_openai(self, prompt: str) -> Optional[str]:
        completion = await self.client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content

    async def _explain_gemini(self, prompt: str) -> Optional[str]:
        response = await self.client.aio.models.generate_content(
            model=GEMINI_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_PROMPT,
                max_output_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            ),
        )
        return response.text

    async def explain(self, title: str, content: str) -> str:
        """
        Explain a news story like the reader is 5

        Args:
            title: Headline
            content: Article description or body

        Returns:
            The explanation, or a fixed fallback when the model returns nothing
        """
        prompt = USER_PROMPT.format(title=title, content=content)
        try:
            if self.provider == "gemini":
                text = await self._explain_gemini(prompt)
            else:
                text = await self._explain_openai(prompt)
        except (OpenAIError, genai_errors.APIError) as e:
            raise ExplainError(f"{self.provider} request failed: {e}") from e

        return (text or "").strip() or FALLBACK_EXPLANATION
