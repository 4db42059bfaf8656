from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from careeros.models.models import UserIdentity
from careeros.models.response import LatestAuditResponse
from careeros.routers.dependencies import get_gateway, get_identity
from careeros.services.db import PersistenceGateway
from careeros.utils.logging_config import get_logger, log_api_call

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
logger = get_logger(__name__)


@router.get("/audit/latest", response_model=LatestAuditResponse)
@log_api_call("latest_audit")
async def latest_audit(
    request: Request,
    identity: Optional[UserIdentity] = Depends(get_identity),
    gateway: Optional[PersistenceGateway] = Depends(get_gateway),
):
    """Newest persisted audit for the caller; ``data`` is null when there is none."""
    if identity is None:
        raise HTTPException(status_code=401, detail="Caller identity headers are required")
    if gateway is None:
        raise HTTPException(status_code=503, detail="Persistence is not configured")

    user = await gateway.upsert_user(identity.external_id, identity.email, identity.display_name)
    record = await gateway.latest_audit(user.id)
    if record is None:
        logger.info(f"No audits yet for user {user.id}")
    return LatestAuditResponse(data=record)
