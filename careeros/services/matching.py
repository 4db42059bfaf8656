from typing import List, Sequence, Tuple

import numpy as np

from careeros.models.models import JobCandidate, MatchResult
from careeros.services.indexer import EmbeddingIndexer
from careeros.utils.exceptions import ModelError
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)

TOP_K = 20


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 whenever it is undefined."""
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0 or not np.isfinite(den):
        return 0.0
    num = float(np.dot(va, vb))
    return max(-1.0, min(1.0, num / den))


def rank(
    query: Sequence[float],
    candidates: Sequence[Tuple[str, Sequence[float]]],
    top_k: int = TOP_K,
) -> List[Tuple[str, float]]:
    """Score every candidate against ``query`` and keep the best ``top_k``.

    Scores are rounded to 4 decimals; ties keep their input order.
    """
    # + 0.0 folds -0.0 into 0.0
    scored = [(cid, round(cosine_similarity(query, vec), 4) + 0.0) for cid, vec in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:top_k]


class JobMatcher:
    def __init__(self, indexer: EmbeddingIndexer, top_k: int = TOP_K):
        self.indexer = indexer
        self.top_k = top_k

    async def match(self, query_text: str, jobs: List[JobCandidate]) -> List[MatchResult]:
        query = await self.indexer.embed_text(query_text)
        if not query.ok:
            raise ModelError(f"Failed to generate resume embedding: {query.degraded_reason}", model_type="embedding")

        candidates = await self.indexer.embed_jobs(jobs)
        failed = sum(1 for _, vec in candidates if not vec)
        if failed:
            logger.warning(f"{failed}/{len(candidates)} job embeddings failed; they score 0")

        ranked = rank(query.value, candidates, self.top_k)
        return [
            MatchResult(job_id=job_id, match_score=score, match_percent=round(max(score, 0.0) * 100, 2))
            for job_id, score in ranked
        ]
