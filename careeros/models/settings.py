"""
Service Settings Models
"""
from pydantic import BaseModel, Field, validator
from typing import Optional


class LLMSettings(BaseModel):
    """Structured-extraction model configuration"""
    model_name: str = Field(default="llama3.1:8b", description="LLM model name")
    base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    timeout: float = Field(default=120, gt=0, le=600, description="Request timeout in seconds")


class EmbeddingSettings(BaseModel):
    """Embedding model configuration"""
    model_name: str = Field(default="nomic-embed-text", description="Primary embedding model")
    fallback_model_name: Optional[str] = Field(default="mxbai-embed-large", description="Alternate model tried once when the primary fails")
    base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    timeout: float = Field(default=30, gt=0, le=300, description="Request timeout in seconds")

    @validator('fallback_model_name')
    def blank_fallback_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class GitHubSettings(BaseModel):
    """Code-hosting API configuration"""
    api_url: str = Field(default="https://api.github.com")
    token: Optional[str] = Field(default=None, description="Optional bearer token")
    timeout: float = Field(default=10, gt=0, le=120)
    max_repos: int = Field(default=100, ge=1, le=100, description="Single page of repositories")
    top_repos: int = Field(default=5, ge=0, le=100)


class DatabaseSettings(BaseModel):
    """Persistence configuration"""
    url: str = Field(default="mongodb://localhost:27017")
    name: str = Field(default="careeros")
    timeout: float = Field(default=5, gt=0, le=120, description="Per-write timeout in seconds")


class PipelineSettings(BaseModel):
    """Audit pipeline and matching configuration"""
    default_target_role: str = Field(default="Software Engineer")
    request_timeout: float = Field(default=180, gt=0, le=1800, description="Overall pipeline deadline in seconds")
    stage_timeout: float = Field(default=60, gt=0, le=600, description="Deadline for each best-effort stage")
    match_top_k: int = Field(default=20, ge=1, le=20, description="Ranked matches returned, at most 20")


class AppSettings(BaseModel):
    """Complete service configuration"""
    llm_settings: LLMSettings = Field(default_factory=LLMSettings)
    embedding_settings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    github_settings: GitHubSettings = Field(default_factory=GitHubSettings)
    database_settings: DatabaseSettings = Field(default_factory=DatabaseSettings)
    pipeline_settings: PipelineSettings = Field(default_factory=PipelineSettings)
