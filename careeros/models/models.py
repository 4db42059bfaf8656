import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator

from careeros.utils.utils import as_list, as_text, clamp_score

PARSE_FAILED_NARRATIVE = "AI analysis unavailable: parsing failed"


def dedupe_preserving_display(items: List[str]) -> List[str]:
    """Drop case-insensitive duplicates, keeping the first spelling seen."""
    seen = set()
    out = []
    for item in items:
        key = item.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


class Document(BaseModel):
    filename: str
    content_type: Optional[str] = None
    content: bytes


# -------- Enrichment --------
class RepoSummary(BaseModel):
    name: str
    description: Optional[str] = None
    stars: int = 0
    language: Optional[str] = None
    topics: List[str] = Field(default_factory=list)


class EnrichmentSignal(BaseModel):
    username: str
    public_repos: int = 0
    total_stars: int = 0
    languages: Dict[str, int] = Field(default_factory=dict)
    top_repos: List[RepoSummary] = Field(default_factory=list)


# -------- Audit --------
class AuditResult(BaseModel):
    readiness_score: int = 0
    market_match_score: int = 0
    project_quality_score: int = 0
    skill_map: Dict[str, int] = Field(default_factory=dict)
    skill_gaps: List[str] = Field(default_factory=list)
    depth_vs_breadth: str = ""
    ats_recommendations: List[str] = Field(default_factory=list)
    market_alignment_insights: str = ""

    @validator("readiness_score", "market_match_score", "project_quality_score", pre=True)
    def clamp_scores(cls, v):
        return clamp_score(v)

    @validator("skill_map", pre=True)
    def clamp_skill_map(cls, v):
        if not isinstance(v, dict):
            return {}
        return {str(k).strip(): clamp_score(s) for k, s in v.items() if str(k).strip()}

    @validator("skill_gaps", "ats_recommendations", pre=True)
    def coerce_lists(cls, v):
        return as_list(v)

    @validator("depth_vs_breadth", "market_alignment_insights", pre=True)
    def coerce_text(cls, v):
        return as_text(v)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AuditResult":
        return cls(**data)

    @classmethod
    def defaults(cls) -> "AuditResult":
        return cls(depth_vs_breadth="N/A", market_alignment_insights=PARSE_FAILED_NARRATIVE)


# -------- Parsed resume --------
class Education(BaseModel):
    degree: str = ""
    institution: str = ""
    year: str = ""

    @validator("degree", "institution", "year", pre=True)
    def coerce_text(cls, v):
        return as_text(v)


class ProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)

    @validator("name", "description", pre=True)
    def coerce_text(cls, v):
        return as_text(v)

    @validator("technologies", pre=True)
    def coerce_list(cls, v):
        return as_list(v)


def _entries(v: Any, key: str) -> List[Dict[str, Any]]:
    if not isinstance(v, list):
        return []
    out = []
    for item in v:
        if isinstance(item, dict):
            out.append(item)
        elif isinstance(item, str) and item.strip():
            out.append({key: item.strip()})
    return out


class ParsedProfile(BaseModel):
    skills: List[str] = Field(default_factory=list)
    experience_years: str = "0"
    education: List[Education] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    strength_score: int = 0
    missing_keywords: List[str] = Field(default_factory=list)
    summary: str = ""

    @validator("skills", "missing_keywords", pre=True)
    def dedupe_lists(cls, v):
        return dedupe_preserving_display(as_list(v))

    @validator("experience_years", pre=True)
    def whole_years(cls, v):
        if isinstance(v, list):
            # sometimes the model returns ["6"]; take first
            v = v[0] if v else None
        if isinstance(v, bool) or v is None:
            return "0"
        if isinstance(v, (int, float)):
            number = float(v)
        else:
            match = re.search(r"\d+(?:\.\d+)?", str(v))
            if not match:
                return "0"
            number = float(match.group(0))
        if number != number or number < 0 or number == float("inf"):
            return "0"
        return str(int(number))

    @validator("education", pre=True)
    def coerce_education(cls, v):
        return _entries(v, "degree")

    @validator("projects", pre=True)
    def coerce_projects(cls, v):
        return _entries(v, "name")

    @validator("strength_score", pre=True)
    def clamp_strength(cls, v):
        return clamp_score(v)

    @validator("summary", pre=True)
    def coerce_summary(cls, v):
        return as_text(v)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ParsedProfile":
        return cls(**data)

    @classmethod
    def defaults(cls) -> "ParsedProfile":
        return cls()


# -------- Matching --------
class JobCandidate(BaseModel):
    id: str
    title: str = ""
    company: str = ""
    description: str = ""
    location: Optional[str] = None
    url: Optional[str] = None

    @validator("id", pre=True)
    def id_as_text(cls, v):
        return as_text(v)

    @validator("title", "company", "description", pre=True)
    def coerce_text(cls, v):
        return as_text(v)


class MatchResult(BaseModel):
    job_id: str
    match_score: float
    match_percent: float = 0.0


# -------- Users & persisted rows --------
class UserIdentity(BaseModel):
    external_id: str
    email: str
    display_name: Optional[str] = None


class UserRecord(BaseModel):
    id: str
    external_id: str
    email: str
    name: Optional[str] = None
    subscription_tier: str = "free"
    streak_count: int = 0
    last_audit_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PersistedAuditRecord(AuditResult):
    id: str
    user_id: str
    target_role: Optional[str] = None
    github_analysis: Optional[EnrichmentSignal] = None
    embedding: Optional[List[float]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# -------- Planning --------
class ProjectIdea(BaseModel):
    title: str = ""
    description: str = ""
    tech_stack: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    architecture: str = ""
    deployment_guide: str = ""
    resume_points: List[str] = Field(default_factory=list)

    @validator("title", "description", "architecture", "deployment_guide", pre=True)
    def coerce_text(cls, v):
        return as_text(v)

    @validator("tech_stack", "features", "resume_points", pre=True)
    def coerce_lists(cls, v):
        return as_list(v)


class SprintTask(BaseModel):
    id: str = ""
    type: str = ""
    description: str = ""
    time_estimate: str = ""
    measurable_outcome: str = ""
    completed: bool = False

    @validator("id", "type", "description", "time_estimate", "measurable_outcome", pre=True)
    def coerce_text(cls, v):
        return as_text(v)


class SprintPlan(BaseModel):
    week_number: int = 1
    year: int = Field(default_factory=lambda: datetime.utcnow().year)
    target_role: Optional[str] = None
    tasks: List[SprintTask] = Field(default_factory=list)
