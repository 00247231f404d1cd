from typing import Any, Protocol


class AIClient(Protocol):
    @property
    def model(self) -> str: ...

    async def generate_json(
        self, prompt: str, schema: dict[str, Any], *, model: str | None = None
    ) -> str | None: ...
