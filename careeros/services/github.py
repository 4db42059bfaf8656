"""
GitHub profile enrichment.

Best-effort by contract: every failure (network, rate limit, unknown user,
unexpected payload) comes back as a degraded ``Outcome`` with no value.
"""
import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from careeros.models.models import EnrichmentSignal, RepoSummary
from careeros.models.results import Outcome
from careeros.models.settings import GitHubSettings
from careeros.utils.exceptions import ExternalServiceError, RateLimitError
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)


def handle_from_url(url: Optional[str]) -> Optional[str]:
    """``https://github.com/octocat/`` -> ``octocat``; a bare handle is returned as-is."""
    if not url or not url.strip():
        return None
    path = urlparse(url.strip()).path if "://" in url else url.strip()
    segments = [s for s in path.split("/") if s]
    if not segments:
        return None
    return segments[-1].lstrip("@") or None


class GitHubEnricher:
    def __init__(self, settings: GitHubSettings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        resp = await self._client.get(
            f"{self.settings.api_url.rstrip('/')}{path}",
            params=params,
            headers=self._headers(),
            timeout=self.settings.timeout,
        )
        if resp.status_code in (403, 429) and (
            resp.status_code == 429 or resp.headers.get("x-ratelimit-remaining") == "0"
        ):
            raise RateLimitError(
                "GitHub rate limit exceeded",
                service_name="github",
                reset_at=resp.headers.get("x-ratelimit-reset"),
            )
        if resp.status_code >= 400:
            raise ExternalServiceError(
                f"GitHub returned {resp.status_code} for {path}",
                service_name="github",
                status_code=resp.status_code,
            )
        return resp.json()

    async def fetch(self, handle: Optional[str]) -> Outcome[EnrichmentSignal]:
        if not handle:
            return Outcome.degraded("no GitHub handle provided")

        try:
            user = await self._get(f"/users/{handle}")
            found = await self._get(
                "/search/repositories",
                params={
                    "q": f"user:{handle}",
                    "sort": "stars",
                    "order": "desc",
                    "per_page": self.settings.max_repos,
                },
            )
            signal = self._aggregate(handle, user, found["items"])
        except (RateLimitError, ExternalServiceError) as e:
            logger.warning(f"GitHub enrichment for {handle} degraded: {e.message}")
            return Outcome.degraded(e.message)
        except asyncio.TimeoutError:
            logger.warning(f"GitHub enrichment for {handle} timed out")
            return Outcome.degraded("GitHub request timed out")
        except httpx.HTTPError as e:
            logger.warning(f"GitHub enrichment for {handle} failed: {e.__class__.__name__}: {e}")
            return Outcome.degraded(f"GitHub request failed: {e.__class__.__name__}")
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"GitHub enrichment for {handle} returned an unexpected payload: {e}")
            return Outcome.degraded("GitHub returned an unexpected payload")

        logger.info(
            f"GitHub enrichment for {handle}: {signal.public_repos} public repos, {signal.total_stars} stars"
        )
        return Outcome.success(signal)

    def _aggregate(self, handle: str, user: Dict[str, Any], repos: List[Dict[str, Any]]) -> EnrichmentSignal:
        if not isinstance(user, dict) or not isinstance(repos, list):
            raise ValueError("user must be an object and repos a list")

        repos = repos[: self.settings.max_repos]
        # search already ranks by stars; the stable sort keeps its order on ties
        ranked = sorted(repos, key=lambda r: int(r.get("stargazers_count") or 0), reverse=True)

        total_stars = 0
        languages: Dict[str, int] = {}
        for repo in ranked:
            total_stars += int(repo.get("stargazers_count") or 0)
            language = repo.get("language")
            if language:
                languages[language] = languages.get(language, 0) + 1

        top_repos = [
            RepoSummary(
                name=repo.get("name") or "",
                description=repo.get("description"),
                stars=int(repo.get("stargazers_count") or 0),
                language=repo.get("language"),
                topics=list(repo.get("topics") or []),
            )
            for repo in ranked[: self.settings.top_repos]
        ]

        return EnrichmentSignal(
            username=user.get("login") or handle,
            public_repos=int(user.get("public_repos") or 0),
            total_stars=total_stars,
            languages=languages,
            top_repos=top_repos,
        )
