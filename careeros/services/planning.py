import json
from typing import List, Optional

from careeros.helpers.prompts import PROJECT_BUILDER_PROMPT, PROJECT_INPUT, SPRINT_GENERATOR_PROMPT, SPRINT_INPUT
from careeros.models.models import AuditResult, ProjectIdea, SprintPlan, SprintTask
from careeros.models.results import Malformed
from careeros.services.inference import InferenceClient
from careeros.utils.exceptions import ModelError
from careeros.utils.logging_config import get_logger
from careeros.utils.utils import locate_json, locate_json_array

logger = get_logger(__name__)


def _audit_json(audit: Optional[AuditResult]) -> str:
    if audit is None:
        return "None"
    # persisted records carry timestamps and the embedding vector
    return json.dumps(audit.dict(exclude={"embedding"}), default=str)


class SprintPlanner:
    """Turns an audit into one week of tasks."""

    def __init__(self, inference: InferenceClient):
        self.inference = inference

    async def generate(self, audit: AuditResult, target_role: str, week_number: int = 1) -> SprintPlan:
        prompt = SPRINT_INPUT.format(audit=_audit_json(audit), target_role=target_role, week_number=week_number)
        raw = await self.inference.extract_structured(prompt, SPRINT_GENERATOR_PROMPT)

        located = locate_json(raw)
        if isinstance(located, Malformed):
            logger.error(f"Sprint plan response was not parseable: {located.error}")
            raise ModelError(f"Sprint generation returned malformed output: {located.error}", model_type="llm")

        tasks = []
        for i, item in enumerate(located.value.get("tasks") or []):
            if not isinstance(item, dict):
                continue
            item = {**item, "completed": False}
            item.setdefault("id", f"task-{i + 1}")
            tasks.append(SprintTask(**item))

        logger.info(f"Generated {len(tasks)} sprint tasks for week {week_number}")
        return SprintPlan(week_number=week_number, target_role=target_role, tasks=tasks)


class ProjectIdeaBuilder:
    def __init__(self, inference: InferenceClient):
        self.inference = inference

    async def generate(self, audit: Optional[AuditResult], target_role: str) -> List[ProjectIdea]:
        prompt = PROJECT_INPUT.format(audit=_audit_json(audit), target_role=target_role)
        raw = await self.inference.extract_structured(prompt, PROJECT_BUILDER_PROMPT)

        located = locate_json_array(raw)
        if isinstance(located, Malformed):
            logger.error(f"Project builder response was not parseable: {located.error}")
            raise ModelError(f"Project generation returned malformed output: {located.error}", model_type="llm")

        ideas = [ProjectIdea(**item) for item in located.value if isinstance(item, dict)]
        logger.info(f"Generated {len(ideas)} project ideas for {target_role}")
        return ideas
