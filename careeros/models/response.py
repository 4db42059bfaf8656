from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from careeros.models.models import (
    AuditResult,
    EnrichmentSignal,
    JobCandidate,
    MatchResult,
    ParsedProfile,
    PersistedAuditRecord,
    ProjectIdea,
    SprintPlan,
)


# -------- Audit pipeline --------
class PipelineResult(BaseModel):
    file_name: str
    text_length: int
    target_role: str
    parsed_data: ParsedProfile
    audit: AuditResult
    github: Optional[EnrichmentSignal] = None
    embedding: Optional[List[float]] = None
    persisted: bool = False
    persistence_error: Optional[str] = None
    audit_id: Optional[str] = None
    user_id: Optional[str] = None
    degradations: Dict[str, str] = Field(default_factory=dict)
    trail: List[str] = Field(default_factory=list)


class AuditResponse(BaseModel):
    success: bool = True
    data: PipelineResult


# -------- Matching --------
class MatchRequest(BaseModel):
    resume_text: str = Field(..., min_length=1)
    jobs: List[JobCandidate]


class MatchResponse(BaseModel):
    success: bool = True
    data: List[MatchResult]


# -------- Planning --------
class SprintRequest(BaseModel):
    audit: AuditResult
    target_role: str = Field(..., min_length=1)
    week_number: int = Field(default=1, ge=1, le=53)


class SprintResponse(BaseModel):
    success: bool = True
    data: SprintPlan
    sprint_id: Optional[str] = None
    user_id: Optional[str] = None
    persisted: bool = False
    persistence_error: Optional[str] = None


class ProjectBuilderRequest(BaseModel):
    audit: Optional[AuditResult] = None
    target_role: Optional[str] = None


class ProjectBuilderResponse(BaseModel):
    success: bool = True
    data: List[ProjectIdea]
    project_ids: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None
    persisted: bool = False
    persistence_error: Optional[str] = None


# -------- Dashboard --------
class LatestAuditResponse(BaseModel):
    success: bool = True
    data: Optional[PersistedAuditRecord] = None
