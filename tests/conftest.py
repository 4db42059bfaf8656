import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from unittest.mock import AsyncMock, MagicMock

from careeros.models.models import AuditResult, Document
from careeros.services.inference import InferenceClient


@pytest.fixture
def inference():
    """Inference client double; tests set side effects on the two methods."""
    client = MagicMock(spec=InferenceClient)
    client.extract_structured = AsyncMock()
    client.embed = AsyncMock(return_value=[0.1, 0.2, 0.3])
    return client


@pytest.fixture
def pdf_document():
    return Document(filename="resume.pdf", content_type="application/pdf", content=b"%PDF-1.4 fake")


@pytest.fixture
def sample_audit():
    return AuditResult(
        readiness_score=72,
        market_match_score=65,
        project_quality_score=58,
        skill_map={"Backend": 80, "DevOps": 40},
        skill_gaps=["Kubernetes", "System Design"],
        depth_vs_breadth="Strong backend depth, thin infrastructure breadth.",
        ats_recommendations=["Quantify impact"],
        market_alignment_insights="Well aligned for mid-level backend roles.",
    )
