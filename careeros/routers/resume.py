from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from careeros.models.models import Document, UserIdentity
from careeros.models.response import AuditResponse
from careeros.routers.dependencies import get_identity, get_pipeline
from careeros.services.pipeline import AuditPipeline
from careeros.utils.logging_config import get_logger, log_api_call

router = APIRouter(tags=["resume"])
logger = get_logger(__name__)


@router.post("/resume", response_model=AuditResponse)
@log_api_call("resume_audit")
async def audit_resume(
    request: Request,
    file: UploadFile = File(...),
    github_url: Optional[str] = Form(None),
    target_role: Optional[str] = Form(None),
    identity: Optional[UserIdentity] = Depends(get_identity),
    pipeline: AuditPipeline = Depends(get_pipeline),
):
    """Run the full audit pipeline over an uploaded resume."""
    content = await file.read()
    document = Document(
        filename=file.filename or "resume.pdf",
        content_type=file.content_type,
        content=content,
    )
    logger.info(f"Received {document.filename} ({len(content)} bytes, {document.content_type})")

    result = await pipeline.run(document, github_url=github_url, target_role=target_role, identity=identity)
    return AuditResponse(data=result)
