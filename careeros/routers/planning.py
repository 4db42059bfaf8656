from typing import Optional

from fastapi import APIRouter, Depends, Request

from careeros.models.models import UserIdentity
from careeros.models.response import (
    ProjectBuilderRequest,
    ProjectBuilderResponse,
    SprintRequest,
    SprintResponse,
)
from careeros.models.settings import AppSettings
from careeros.routers.dependencies import NO_IDENTITY, get_gateway, get_identity, get_inference, get_settings
from careeros.services.db import PersistenceGateway
from careeros.services.inference import InferenceClient
from careeros.services.planning import ProjectIdeaBuilder, SprintPlanner
from careeros.utils.exceptions import DatabaseError
from careeros.utils.logging_config import get_logger, log_api_call

router = APIRouter(tags=["planning"])
logger = get_logger(__name__)


@router.post("/sprint/generate", response_model=SprintResponse)
@log_api_call("sprint_generate")
async def generate_sprint(
    request: Request,
    body: SprintRequest,
    identity: Optional[UserIdentity] = Depends(get_identity),
    inference: InferenceClient = Depends(get_inference),
    gateway: Optional[PersistenceGateway] = Depends(get_gateway),
):
    plan = await SprintPlanner(inference).generate(body.audit, body.target_role, body.week_number)
    response = SprintResponse(data=plan)

    if identity is None or gateway is None:
        response.persistence_error = NO_IDENTITY if identity is None else "persistence is not configured"
        return response

    try:
        user = await gateway.upsert_user(identity.external_id, identity.email, identity.display_name)
        response.user_id = user.id
        response.sprint_id = await gateway.append_sprint(user.id, plan)
        response.persisted = True
    except DatabaseError as e:
        logger.warning(f"Sprint for {identity.external_id} was not saved: {e.message}")
        response.persistence_error = e.message
    return response


@router.post("/project-builder", response_model=ProjectBuilderResponse)
@log_api_call("project_builder")
async def build_projects(
    request: Request,
    body: ProjectBuilderRequest,
    identity: Optional[UserIdentity] = Depends(get_identity),
    inference: InferenceClient = Depends(get_inference),
    gateway: Optional[PersistenceGateway] = Depends(get_gateway),
    settings: AppSettings = Depends(get_settings),
):
    target_role = (body.target_role or "").strip() or settings.pipeline_settings.default_target_role
    user = None
    audit = body.audit

    if identity is not None and gateway is not None:
        try:
            user = await gateway.upsert_user(identity.external_id, identity.email, identity.display_name)
            if audit is None:
                # fall back to the caller's most recent audit
                audit = await gateway.latest_audit(user.id)
        except DatabaseError as e:
            logger.warning(f"Could not load context for {identity.external_id}: {e.message}")

    ideas = await ProjectIdeaBuilder(inference).generate(audit, target_role)
    response = ProjectBuilderResponse(data=ideas)

    if user is None:
        response.persistence_error = NO_IDENTITY if identity is None else "user record unavailable"
        return response

    response.user_id = user.id
    try:
        response.project_ids = await gateway.append_project_ideas(user.id, ideas, target_role)
        response.persisted = True
    except DatabaseError as e:
        logger.warning(f"Project ideas for {identity.external_id} were not saved: {e.message}")
        response.persistence_error = e.message
    return response
