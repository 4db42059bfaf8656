"""
Client for the generative model service (Ollama HTTP API).

Constructed once per application and passed to whoever needs it; there is no
module-level instance.
"""
from typing import List, Optional

import httpx

from careeros.models.settings import EmbeddingSettings, LLMSettings
from careeros.utils.exceptions import ModelError
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)


class InferenceClient:
    def __init__(
        self,
        llm_settings: LLMSettings,
        embedding_settings: EmbeddingSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.llm_settings = llm_settings
        self.embedding_settings = embedding_settings
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def extract_structured(self, text: str, instruction: str) -> str:
        """Send ``text`` with a fixed system instruction; return the raw model text.

        The answer is expected, not guaranteed, to hold a JSON object. There is
        no fallback model: any failure is raised as ``ModelError``.
        """
        settings = self.llm_settings
        url = f"{settings.base_url.rstrip('/')}/api/generate"
        try:
            resp = await self._client.post(
                url,
                json={
                    "model": settings.model_name,
                    "system": instruction,
                    "prompt": text,
                    "options": {"temperature": settings.temperature},
                    "stream": False,
                },
                timeout=settings.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError(f"unexpected payload type {type(data).__name__}")
            return data.get("response", "") or ""
        except httpx.HTTPError as e:
            raise ModelError(
                f"Structured extraction request failed: {e.__class__.__name__}: {e}",
                model_name=settings.model_name,
                model_type="llm",
                cause=e,
            ) from e
        except ValueError as e:
            raise ModelError(
                "Structured extraction returned a non-JSON envelope",
                model_name=settings.model_name,
                model_type="llm",
                cause=e,
            ) from e

    async def embed(self, text: str) -> List[float]:
        """Embed ``text``; ``[]`` means both the primary and the alternate model failed."""
        models = [self.embedding_settings.model_name]
        fallback = self.embedding_settings.fallback_model_name
        if fallback and fallback != models[0]:
            models.append(fallback)

        for model in models:
            try:
                vector = await self._embed_with(model, text)
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Embedding with {model} failed: {e.__class__.__name__}: {e}")
                continue
            if vector:
                return vector
            logger.warning(f"Embedding with {model} returned an empty vector")

        logger.warning("All embedding models failed")
        return []

    async def _embed_with(self, model: str, text: str) -> List[float]:
        settings = self.embedding_settings
        resp = await self._client.post(
            f"{settings.base_url.rstrip('/')}/api/embed",
            json={"model": model, "input": text},
            timeout=settings.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        # /api/embed returns a batch; older servers answer with a single "embedding"
        if "embeddings" in data:
            vectors = data["embeddings"]
            values = vectors[0] if vectors else []
        else:
            values = data["embedding"]
        return [float(v) for v in values]
