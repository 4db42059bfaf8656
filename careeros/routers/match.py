from fastapi import APIRouter, Depends, Request

from careeros.models.response import MatchRequest, MatchResponse
from careeros.routers.dependencies import get_matcher
from careeros.services.matching import JobMatcher
from careeros.utils.logging_config import get_logger, log_api_call

router = APIRouter(tags=["match"])
logger = get_logger(__name__)


@router.post("/match", response_model=MatchResponse)
@log_api_call("job_match")
async def match_jobs(request: Request, body: MatchRequest, matcher: JobMatcher = Depends(get_matcher)):
    if not body.jobs:
        return MatchResponse(data=[])
    results = await matcher.match(body.resume_text, body.jobs)
    logger.info(f"Ranked {len(body.jobs)} jobs, returning {len(results)}")
    return MatchResponse(data=results)
