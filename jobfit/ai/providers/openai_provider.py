from __future__ import annotations

import os
from typing import Any, Optional

from openai import AsyncOpenAI

from jobfit.core.config import settings


def to_json_schema(node: dict[str, Any]) -> dict[str, Any]:
    """Translate an OBJECT/ARRAY/STRING/NUMBER descriptor into JSON Schema."""
    converted: dict[str, Any] = {"type": str(node["type"]).lower()}
    if "properties" in node:
        converted["properties"] = {key: to_json_schema(child) for key, child in node["properties"].items()}
        converted["required"] = list(node.get("required", []))
        converted["additionalProperties"] = False
    if "items" in node:
        converted["items"] = to_json_schema(node["items"])
    return converted


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        temperature: float = 0.0,
        seed: int = 42,
    ):
        self._model = model
        self._temperature = temperature
        self._seed = seed
        key = (api_key or settings.openai_api_key or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        # Failed analyses are not retried.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    async def generate_json(
        self, prompt: str, schema: dict[str, Any], *, model: str | None = None
    ) -> str | None:
        response = await self._client.chat.completions.create(
            model=model or self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
            seed=self._seed,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": to_json_schema(schema), "strict": False},
            },
        )
        return response.choices[0].message.content if response.choices else None
