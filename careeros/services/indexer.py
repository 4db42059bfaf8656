import asyncio
from typing import List, Optional, Tuple

from careeros.helpers.parsing import clean_text
from careeros.models.models import AuditResult, JobCandidate
from careeros.models.results import Outcome
from careeros.services.inference import InferenceClient
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)


def profile_summary_text(audit: AuditResult, target_role: str) -> str:
    skills = ", ".join(audit.skill_map.keys())
    gaps = ", ".join(audit.skill_gaps)
    return clean_text(f"{skills} {gaps} {target_role}")


def job_text(job: JobCandidate) -> str:
    return f"{job.title} at {job.company}. {job.description}"


class EmbeddingIndexer:
    def __init__(self, inference: InferenceClient, timeout: Optional[float] = None):
        self.inference = inference
        self.timeout = timeout

    async def _embed(self, text: str) -> List[float]:
        if self.timeout is None:
            return await self.inference.embed(text)
        return await asyncio.wait_for(self.inference.embed(text), timeout=self.timeout)

    async def embed_text(self, text: str) -> Outcome[List[float]]:
        try:
            vector = await self._embed(text)
        except asyncio.TimeoutError:
            return Outcome.degraded("embedding timed out")
        if not vector:
            return Outcome.degraded("embedding service returned no vector")
        return Outcome.success(vector)

    async def embed_profile(self, audit: AuditResult, target_role: str) -> Outcome[List[float]]:
        return await self.embed_text(profile_summary_text(audit, target_role))

    async def embed_jobs(self, jobs: List[JobCandidate]) -> List[Tuple[str, List[float]]]:
        """Embed every job concurrently; a job whose embedding fails gets ``[]``."""
        results = await asyncio.gather(
            *(self._embed(job_text(job)) for job in jobs),
            return_exceptions=True,
        )
        out = []
        for job, result in zip(jobs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Embedding for job {job.id} failed: {result.__class__.__name__}: {result}")
                result = []
            out.append((job.id, result))
        return out
