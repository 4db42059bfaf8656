from typing import Optional

from fastapi import Header, Request

from careeros.models.models import UserIdentity
from careeros.models.settings import AppSettings
from careeros.services.db import PersistenceGateway
from careeros.services.inference import InferenceClient
from careeros.services.matching import JobMatcher
from careeros.services.pipeline import AuditPipeline

NO_IDENTITY = "no authenticated user; nothing was saved"


def get_identity(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    email: Optional[str] = Header(None, alias="X-User-Email"),
    name: Optional[str] = Header(None, alias="X-User-Name"),
) -> Optional[UserIdentity]:
    """Caller identity as forwarded by the upstream auth layer, if any."""
    if not user_id or not user_id.strip():
        return None
    return UserIdentity(external_id=user_id.strip(), email=(email or "").strip(), display_name=name or None)


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_inference(request: Request) -> InferenceClient:
    return request.app.state.inference


def get_gateway(request: Request) -> Optional[PersistenceGateway]:
    return getattr(request.app.state, "gateway", None)


def get_pipeline(request: Request) -> AuditPipeline:
    return request.app.state.pipeline


def get_matcher(request: Request) -> JobMatcher:
    return request.app.state.matcher
