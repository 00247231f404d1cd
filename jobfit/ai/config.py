from dataclasses import dataclass

from jobfit.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    fast_model: str
    temperature: float
    seed: int


def load_ai_config() -> AIConfig:
    return AIConfig(
        provider=settings.ai_provider,
        model=settings.ai_model,
        fast_model=settings.ai_fast_model,
        temperature=settings.analysis_temperature,
        seed=settings.analysis_seed,
    )
