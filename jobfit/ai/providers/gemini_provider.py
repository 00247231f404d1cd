from __future__ import annotations

from typing import Any, Optional

from google import genai
from google.genai import types

from jobfit.core.config import settings


class GeminiProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        seed: int = 42,
    ):
        self._model = model
        self._temperature = temperature
        self._seed = seed
        key = (api_key or settings.gemini_api_key or "").strip()
        if not key:
            raise RuntimeError("GEMINI_API_KEY is missing")

        self._client = genai.Client(api_key=key)

    @property
    def model(self) -> str:
        return self._model

    async def generate_json(
        self, prompt: str, schema: dict[str, Any], *, model: str | None = None
    ) -> str | None:
        response = await self._client.aio.models.generate_content(
            model=model or self._model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self._temperature,
                seed=self._seed,
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return response.text
