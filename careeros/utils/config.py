import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from careeros.models.settings import (
    AppSettings,
    DatabaseSettings,
    EmbeddingSettings,
    GitHubSettings,
    LLMSettings,
    PipelineSettings,
)
from careeros.utils.exceptions import ConfigurationError


def _env(values: Dict[str, Optional[str]]) -> Dict[str, str]:
    # unset variables fall through to the model defaults
    return {k: v for k, v in values.items() if v is not None and v != ""}


def load_settings(env_file: Optional[str] = None) -> AppSettings:
    """Build settings from the environment (and a .env file when present)."""
    load_dotenv(env_file)

    ollama = os.getenv("OLLAMA_BASE_URL")
    try:
        return AppSettings(
            llm_settings=LLMSettings(**_env({
                "base_url": ollama,
                "model_name": os.getenv("LLM_MODEL"),
                "temperature": os.getenv("LLM_TEMPERATURE"),
                "timeout": os.getenv("LLM_TIMEOUT"),
            })),
            embedding_settings=EmbeddingSettings(**_env({
                "base_url": ollama,
                "model_name": os.getenv("EMBED_MODEL"),
                "fallback_model_name": os.getenv("EMBED_FALLBACK_MODEL"),
                "timeout": os.getenv("EMBED_TIMEOUT"),
            })),
            github_settings=GitHubSettings(**_env({
                "api_url": os.getenv("GITHUB_API_URL"),
                "token": os.getenv("GITHUB_TOKEN"),
                "timeout": os.getenv("GITHUB_TIMEOUT"),
            })),
            database_settings=DatabaseSettings(**_env({
                "url": os.getenv("MONGO_DETAILS"),
                "name": os.getenv("DB_NAME"),
                "timeout": os.getenv("DB_TIMEOUT"),
            })),
            pipeline_settings=PipelineSettings(**_env({
                "default_target_role": os.getenv("DEFAULT_TARGET_ROLE"),
                "request_timeout": os.getenv("REQUEST_TIMEOUT"),
                "stage_timeout": os.getenv("STAGE_TIMEOUT"),
                "match_top_k": os.getenv("MATCH_TOP_K"),
            })),
        )
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid service configuration: {e}", cause=e) from e
