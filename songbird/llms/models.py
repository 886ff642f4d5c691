from __future__ import annotations

from functools import cache

from fastapi import Depends
from pydantic_ai.models import Model, infer_model

from songbird.config import Config, get_config
from songbird.log import logger

SUPPORTED_PROVIDERS = ["openai", "azure"]


def init_model(provider: str, model_name: str) -> Model:
    return infer_model(f"{provider}:{model_name}")


@cache
def _get_default_model(provider: str, model_name: str) -> Model | None:
    try:
        return init_model(provider, model_name)
    except Exception as e:
        # Missing credentials surface here; the API answers 501 until they are set.
        logger.warning(f"Default model {provider}:{model_name} is unavailable: {e}")
        return None


def get_default_model(config: Config = Depends(get_config)) -> Model | None:
    return _get_default_model(config.default_model_provider, config.default_model_name)
