import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from careeros.models.models import Document, EnrichmentSignal, UserIdentity, UserRecord
from careeros.models.results import Outcome
from careeros.models.settings import PipelineSettings
from careeros.services.db import PersistenceGateway
from careeros.services.github import GitHubEnricher
from careeros.services.pipeline import AuditPipeline, PipelineState
from careeros.utils.exceptions import (
    DatabaseError,
    ModelError,
    PipelineTimeoutError,
    UnprocessableContentError,
    ValidationError,
)

RESUME_TEXT = "Jane Doe. Backend engineer. Python, FastAPI, PostgreSQL. 5 years."
AUDIT = {
    "readiness_score": 74,
    "market_match_score": 68,
    "project_quality_score": 61,
    "skill_map": {"Backend": 82, "DevOps": 35},
    "skill_gaps": ["Kubernetes"],
    "depth_vs_breadth": "Depth over breadth.",
    "ats_recommendations": ["Quantify impact"],
    "market_alignment_insights": "Solid backend profile.",
}
PROFILE = {"skills": ["Python", "FastAPI"], "experience_years": "5", "strength_score": 70, "summary": "Backend engineer."}
IDENTITY = UserIdentity(external_id="clerk_42", email="jane@example.com", display_name="Jane")
FULL_TRAIL = ["received", "extracted", "enriched", "audited", "embedded", "persisted", "done"]


def _model_answers(audit_raw=None, profile_raw=None):
    audit_raw = json.dumps(AUDIT) if audit_raw is None else audit_raw
    profile_raw = json.dumps(PROFILE) if profile_raw is None else profile_raw

    async def extract(text, instruction):
        raw = audit_raw if "career readiness auditor" in instruction else profile_raw
        if isinstance(raw, Exception):
            raise raw
        return raw
    return extract


@pytest.fixture
def enricher():
    mock = MagicMock(spec=GitHubEnricher)
    mock.fetch = AsyncMock(return_value=Outcome.success(
        EnrichmentSignal(username="janedoe", public_repos=12, total_stars=40, languages={"Python": 8})
    ))
    return mock


@pytest.fixture
def gateway():
    mock = MagicMock(spec=PersistenceGateway)
    mock.upsert_user = AsyncMock(return_value=UserRecord(id="u-1", external_id="clerk_42", email="jane@example.com"))
    mock.append_audit = AsyncMock(return_value="a-1")
    mock.touch_last_audit = AsyncMock()
    return mock


@pytest.fixture
def pipeline(inference, enricher, gateway):
    inference.extract_structured.side_effect = _model_answers()
    return AuditPipeline(inference, enricher, gateway, PipelineSettings(stage_timeout=1, request_timeout=5))


@pytest.fixture(autouse=True)
def pdf_text():
    with patch("careeros.helpers.parsing.read_pdf", return_value=RESUME_TEXT) as mock:
        yield mock


class TestAuditPipeline:
    """End-to-end orchestration with the external services doubled"""

    async def test_full_run(self, pipeline, inference, enricher, gateway, pdf_document):
        result = await pipeline.run(pdf_document, "https://github.com/janedoe", "Backend Engineer", IDENTITY)

        assert result.file_name == "resume.pdf"
        assert result.text_length == len(RESUME_TEXT)
        assert result.target_role == "Backend Engineer"
        assert result.audit.readiness_score == 74
        assert result.parsed_data.skills == ["Python", "FastAPI"]
        assert result.github.username == "janedoe"
        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.persisted is True
        assert result.persistence_error is None
        assert result.audit_id == "a-1"
        assert result.user_id == "u-1"
        assert result.degradations == {}
        assert result.trail == FULL_TRAIL

        enricher.fetch.assert_awaited_once_with("janedoe")
        gateway.upsert_user.assert_awaited_once_with("clerk_42", "jane@example.com", "Jane")
        args, kwargs = gateway.append_audit.call_args
        assert args[0] == "u-1"
        assert args[2].username == "janedoe"
        assert kwargs["embedding"] == [0.1, 0.2, 0.3]
        assert kwargs["target_role"] == "Backend Engineer"
        gateway.touch_last_audit.assert_awaited_once_with("u-1")

    async def test_default_target_role(self, pipeline, inference, pdf_document):
        result = await pipeline.run(pdf_document, identity=IDENTITY)

        assert result.target_role == "Software Engineer"
        assert any("Software Engineer" in call.args[0] for call in inference.extract_structured.call_args_list)

    async def test_no_github_url_skips_enrichment(self, pipeline, enricher, gateway, pdf_document):
        result = await pipeline.run(pdf_document, identity=IDENTITY)

        enricher.fetch.assert_not_called()
        assert result.github is None
        assert result.degradations["enrichment"] == "no GitHub handle provided"
        assert result.persisted is True
        assert gateway.append_audit.call_args.args[2] is None

    async def test_enrichment_failure_is_not_fatal(self, pipeline, enricher, pdf_document):
        enricher.fetch.return_value = Outcome.degraded("GitHub returned 404 for /users/nobody")

        result = await pipeline.run(pdf_document, "https://github.com/nobody", identity=IDENTITY)

        assert result.github is None
        assert result.audit.readiness_score == 74
        assert result.persisted is True
        assert "404" in result.degradations["enrichment"]

    async def test_enrichment_exception_is_contained(self, pipeline, enricher, pdf_document):
        enricher.fetch.side_effect = RuntimeError("unexpected")

        result = await pipeline.run(pdf_document, "https://github.com/janedoe", identity=IDENTITY)

        assert result.github is None
        assert "unexpected" in result.degradations["enrichment"]

    async def test_enrichment_timeout(self, pipeline, enricher, pdf_document):
        async def hang(handle):
            await asyncio.sleep(10)

        enricher.fetch.side_effect = hang

        result = await pipeline.run(pdf_document, "https://github.com/janedoe", identity=IDENTITY)

        assert result.github is None
        assert "timed out" in result.degradations["enrichment"]
        assert result.persisted is True

    async def test_persistence_failure_still_returns_audit(self, pipeline, gateway, pdf_document):
        gateway.append_audit.side_effect = DatabaseError("Database error in append_audit: connection reset")

        result = await pipeline.run(pdf_document, "https://github.com/janedoe", identity=IDENTITY)

        assert result.persisted is False
        assert "connection reset" in result.persistence_error
        assert result.audit_id is None
        assert result.audit.readiness_score == 74
        assert result.trail[-2:] == ["persist_failed", "done"]
        gateway.touch_last_audit.assert_not_called()

    async def test_last_audit_stamp_failure_keeps_saved_audit(self, pipeline, gateway, pdf_document):
        gateway.touch_last_audit.side_effect = DatabaseError("stamp failed")

        result = await pipeline.run(pdf_document, identity=IDENTITY)

        assert result.persisted is True
        assert result.audit_id == "a-1"

    async def test_anonymous_caller_not_persisted(self, pipeline, gateway, pdf_document):
        result = await pipeline.run(pdf_document)

        assert result.persisted is False
        assert "no authenticated user" in result.persistence_error
        assert PipelineState.PERSIST_FAILED.value in result.trail
        gateway.upsert_user.assert_not_called()

    async def test_embedding_failure_leaves_embedding_absent(self, pipeline, inference, gateway, pdf_document):
        inference.embed.return_value = []

        result = await pipeline.run(pdf_document, identity=IDENTITY)

        assert result.embedding is None
        assert "embedding" in result.degradations
        assert result.persisted is True
        assert gateway.append_audit.call_args.kwargs["embedding"] is None
        assert "embedded" in result.trail

    async def test_partial_model_failure(self, pipeline, inference, pdf_document):
        inference.extract_structured.side_effect = _model_answers(audit_raw="no json here")

        result = await pipeline.run(pdf_document, identity=IDENTITY)

        assert result.audit.readiness_score == 0
        assert result.parsed_data.strength_score == 70
        assert "audit" in result.degradations

    async def test_total_model_failure_is_fatal(self, pipeline, inference, gateway, pdf_document):
        inference.extract_structured.side_effect = ModelError("connection refused")

        with pytest.raises(ModelError):
            await pipeline.run(pdf_document, identity=IDENTITY)
        gateway.append_audit.assert_not_called()

    async def test_wrong_media_type_stops_before_any_call(self, pipeline, inference, enricher, pdf_text):
        doc = Document(filename="resume.txt", content_type="text/plain", content=b"hello")

        with pytest.raises(ValidationError):
            await pipeline.run(doc, "https://github.com/janedoe", identity=IDENTITY)

        pdf_text.assert_not_called()
        enricher.fetch.assert_not_called()
        inference.extract_structured.assert_not_called()

    async def test_blank_pdf_is_unprocessable(self, pipeline, inference, pdf_text, pdf_document):
        pdf_text.return_value = "  \n "

        with pytest.raises(UnprocessableContentError):
            await pipeline.run(pdf_document, identity=IDENTITY)
        inference.extract_structured.assert_not_called()

    async def test_overall_deadline(self, inference, enricher, gateway, pdf_document):
        async def slow(text, instruction):
            await asyncio.sleep(10)

        inference.extract_structured.side_effect = slow
        pipeline = AuditPipeline(inference, enricher, gateway, PipelineSettings(stage_timeout=1, request_timeout=0.2))

        with pytest.raises(PipelineTimeoutError):
            await pipeline.run(pdf_document, identity=IDENTITY)

    async def test_store_down_everywhere(self, pipeline, gateway, pdf_document):
        gateway.upsert_user.side_effect = DatabaseError("Database error in upsert_user: no servers")
        gateway.append_audit.side_effect = DatabaseError("Database error in append_audit: no servers")

        result = await pipeline.run(pdf_document, identity=IDENTITY)

        assert result.persisted is False
        assert result.persistence_error
        assert result.audit.readiness_score == 74
        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.trail[-1] == "done"

    async def test_long_resume_without_enrichment(self, pipeline, pdf_text, pdf_document):
        pdf_text.return_value = " ".join(["engineer"] * 500)

        result = await pipeline.run(pdf_document, None, "Backend Engineer", IDENTITY)

        for score in (result.audit.readiness_score, result.audit.market_match_score, result.audit.project_quality_score):
            assert 0 <= score <= 100
        assert result.audit.skill_map
        assert int(result.parsed_data.experience_years) >= 0
        assert result.github is None
        assert result.text_length == len(pdf_text.return_value)
