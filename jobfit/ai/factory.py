from jobfit.ai.config import load_ai_config
from jobfit.ai.types import AIClient

from jobfit.ai.providers.gemini_provider import GeminiProvider
from jobfit.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> AIClient:
    # AI_PROVIDER is restricted to gemini/openai when settings load.
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model, temperature=cfg.temperature, seed=cfg.seed)

    return GeminiProvider(model=cfg.model, temperature=cfg.temperature, seed=cfg.seed)
