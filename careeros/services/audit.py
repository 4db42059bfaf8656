import asyncio
import json
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Type, TypeVar, Union

from careeros.helpers.prompts import AUDIT_INPUT, CAREER_AUDIT_PROMPT, PARSE_INPUT, RESUME_PARSE_PROMPT
from careeros.models.models import AuditResult, EnrichmentSignal, ParsedProfile
from careeros.models.results import Malformed
from careeros.services.inference import InferenceClient
from careeros.utils.exceptions import ModelError
from careeros.utils.logging_config import get_logger
from careeros.utils.utils import locate_json

logger = get_logger(__name__)

R = TypeVar("R", AuditResult, ParsedProfile)

@dataclass
class Synthesis:
    audit: AuditResult
    profile: ParsedProfile
    degradations: Dict[str, str] = field(default_factory=dict)

def _coerce(kind: str, raw: Union[str, BaseException], model: Type[R]) -> Tuple[R, Optional[str]]:
    """Turn one model answer into a record, falling back to that record's defaults."""
    if isinstance(raw, BaseException):
        reason = f"{kind} request failed: {raw}"
        logger.warning(reason)
        return model.defaults(), reason

    located = locate_json(raw)
    if isinstance(located, Malformed):
        reason = f"{kind} response was not parseable: {located.error}"
        logger.warning(reason, extra={"raw_preview": located.raw_text[:200]})
        return model.defaults(), reason

    try:
        return model.from_payload(located.value), None
    except (ValueError, TypeError) as e:
        reason = f"{kind} response had unusable fields: {e}"
        logger.warning(reason)
        return model.defaults(), reason

class AuditSynthesizer:
    """Runs the career audit and the structured resume parse side by side."""

    def __init__(self, inference: InferenceClient):
        self.inference = inference

    async def synthesize(
        self,
        text: str,
        enrichment: Optional[EnrichmentSignal],
        target_role: str,
    ) -> Synthesis:
        github = json.dumps(enrichment.dict()) if enrichment is not None else "None"
        audit_input = AUDIT_INPUT.format(target_role=target_role, resume=text, github=github)
        parse_input = PARSE_INPUT.format(target_role=target_role, resume=text)

        # results are matched by position, never by completion order
        audit_raw, profile_raw = await asyncio.gather(
            self.inference.extract_structured(audit_input, CAREER_AUDIT_PROMPT),
            self.inference.extract_structured(parse_input, RESUME_PARSE_PROMPT),
            return_exceptions=True,
        )

        for raw in (audit_raw, profile_raw):
            if isinstance(raw, BaseException) and not isinstance(raw, Exception):
                raise raw  # cancellation

        if isinstance(audit_raw, Exception) and isinstance(profile_raw, Exception):
            logger.error(f"Both structured extractions failed: {audit_raw}; {profile_raw}")
            raise ModelError(
                "Career audit failed: the model service did not answer",
                model_type="llm",
                details={"audit_error": str(audit_raw), "profile_error": str(profile_raw)},
                cause=audit_raw,
            )

        audit, audit_reason = _coerce("audit", audit_raw, AuditResult)
        profile, profile_reason = _coerce("profile", profile_raw, ParsedProfile)

        degradations = {}
        if audit_reason:
            degradations["audit"] = audit_reason
        if profile_reason:
            degradations["profile"] = profile_reason
        return Synthesis(audit=audit, profile=profile, degradations=degradations)
