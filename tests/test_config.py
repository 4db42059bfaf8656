import os

import pytest

from careeros.utils.config import load_settings
from careeros.utils.exceptions import ConfigurationError

ENV_KEYS = [
    "OLLAMA_BASE_URL", "LLM_MODEL", "LLM_TEMPERATURE", "LLM_TIMEOUT", "EMBED_MODEL",
    "EMBED_FALLBACK_MODEL", "EMBED_TIMEOUT", "GITHUB_API_URL", "GITHUB_TOKEN", "GITHUB_TIMEOUT",
    "MONGO_DETAILS", "DB_NAME", "DB_TIMEOUT", "DEFAULT_TARGET_ROLE", "REQUEST_TIMEOUT",
    "STAGE_TIMEOUT", "MATCH_TOP_K",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, clean_env, tmp_path):
        settings = load_settings(str(tmp_path / "missing.env"))

        assert settings.llm_settings.base_url == "http://localhost:11434"
        assert settings.embedding_settings.fallback_model_name == "mxbai-embed-large"
        assert settings.github_settings.token is None
        assert settings.pipeline_settings.match_top_k == 20
        assert settings.pipeline_settings.default_target_role == "Software Engineer"

    def test_environment_overrides(self, clean_env, tmp_path):
        clean_env.setenv("OLLAMA_BASE_URL", "http://ollama:11434")
        clean_env.setenv("LLM_TEMPERATURE", "0.7")
        clean_env.setenv("GITHUB_TOKEN", "ghp_x")
        clean_env.setenv("MATCH_TOP_K", "5")

        settings = load_settings(str(tmp_path / "missing.env"))

        assert settings.llm_settings.base_url == "http://ollama:11434"
        assert settings.embedding_settings.base_url == "http://ollama:11434"
        assert settings.llm_settings.temperature == 0.7
        assert settings.github_settings.token == "ghp_x"
        assert settings.pipeline_settings.match_top_k == 5

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DEFAULT_TARGET_ROLE=Data Engineer\n")

        try:
            settings = load_settings(str(env_file))
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop("DEFAULT_TARGET_ROLE", None)

        assert settings.pipeline_settings.default_target_role == "Data Engineer"

    def test_match_top_k_cannot_exceed_twenty(self, clean_env, tmp_path):
        clean_env.setenv("MATCH_TOP_K", "21")

        with pytest.raises(ConfigurationError):
            load_settings(str(tmp_path / "missing.env"))

    def test_out_of_range_value(self, clean_env, tmp_path):
        clean_env.setenv("LLM_TEMPERATURE", "9")

        with pytest.raises(ConfigurationError):
            load_settings(str(tmp_path / "missing.env"))
