"""
Audit pipeline orchestration.

    received -> extracted -> enriched -> audited -> embedded -> persisted | persist_failed -> done

Only two things end a request early: a failed text extraction and an audit
where both model calls failed. Enrichment, embedding and persistence degrade
into explicit fields of the response instead.
"""
import asyncio
import operator
from enum import Enum
from typing import Annotated, Any, Awaitable, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from careeros.helpers.parsing import extract_document_text
from careeros.models.models import Document, UserIdentity
from careeros.models.response import PipelineResult
from careeros.models.results import Outcome
from careeros.models.settings import PipelineSettings
from careeros.services.audit import AuditSynthesizer, Synthesis
from careeros.services.db import PersistenceGateway
from careeros.services.github import GitHubEnricher, handle_from_url
from careeros.services.indexer import EmbeddingIndexer
from careeros.services.inference import InferenceClient
from careeros.utils.exceptions import DatabaseError, PipelineTimeoutError
from careeros.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)


class PipelineState(str, Enum):
    RECEIVED = "received"
    EXTRACTED = "extracted"
    ENRICHED = "enriched"
    AUDITED = "audited"
    EMBEDDED = "embedded"
    PERSISTED = "persisted"
    PERSIST_FAILED = "persist_failed"
    DONE = "done"


class AuditState(TypedDict, total=False):
    document: Document
    handle: Optional[str]
    target_role: str
    identity: Optional[UserIdentity]
    text: str
    enrichment: Outcome
    synthesis: Synthesis
    embedding: Outcome
    persistence: Outcome
    trail: Annotated[List[str], operator.add]


class AuditPipeline:
    def __init__(
        self,
        inference: InferenceClient,
        enricher: GitHubEnricher,
        gateway: Optional[PersistenceGateway],
        settings: Optional[PipelineSettings] = None,
    ):
        self.settings = settings or PipelineSettings()
        self.enricher = enricher
        self.gateway = gateway
        self.synthesizer = AuditSynthesizer(inference)
        self.indexer = EmbeddingIndexer(inference)
        self._graph = self._build_graph()

    def _build_graph(self):
        g = StateGraph(AuditState)
        g.add_node("extract", self._node_extract)
        g.add_node("enrich", self._node_enrich)
        g.add_node("audit", self._node_audit)
        g.add_node("embed", self._node_embed)
        g.add_node("persist", self._node_persist)
        g.set_entry_point("extract")
        g.add_edge("extract", "enrich")
        g.add_edge("enrich", "audit")
        g.add_edge("audit", "embed")
        g.add_edge("embed", "persist")
        g.add_edge("persist", END)
        return g.compile()

    async def run(
        self,
        document: Document,
        github_url: Optional[str] = None,
        target_role: Optional[str] = None,
        identity: Optional[UserIdentity] = None,
    ) -> PipelineResult:
        role = (target_role or "").strip() or self.settings.default_target_role
        initial: AuditState = {
            "document": document,
            "handle": handle_from_url(github_url),
            "target_role": role,
            "identity": identity,
            "trail": [PipelineState.RECEIVED.value],
        }

        with PerformanceMonitor(f"audit pipeline for {document.filename}", logger,
                                threshold_ms=self.settings.request_timeout * 500):
            try:
                final = await asyncio.wait_for(
                    self._graph.ainvoke(initial),
                    timeout=self.settings.request_timeout,
                )
            except asyncio.TimeoutError as e:
                raise PipelineTimeoutError(
                    "Audit did not finish in time",
                    timeout=self.settings.request_timeout,
                ) from e

        return self._to_payload(final)

    async def _best_effort(self, stage: str, work: Awaitable[Outcome]) -> Outcome:
        timeout = self.settings.stage_timeout
        try:
            return await asyncio.wait_for(work, timeout=timeout)
        except asyncio.TimeoutError:
            reason = f"{stage} timed out after {timeout:g}s"
        except Exception as e:
            reason = getattr(e, "message", None) or f"{e.__class__.__name__}: {e}"
        logger.warning(f"Stage '{stage}' degraded: {reason}")
        return Outcome.degraded(reason)

    # -------- nodes --------

    async def _node_extract(self, state: AuditState) -> Dict[str, Any]:
        text = extract_document_text(state["document"])
        return {"text": text, "trail": [PipelineState.EXTRACTED.value]}

    async def _node_enrich(self, state: AuditState) -> Dict[str, Any]:
        handle = state.get("handle")
        if handle:
            enrichment = await self._best_effort("enrichment", self.enricher.fetch(handle))
        else:
            enrichment = Outcome.degraded("no GitHub handle provided")
        return {"enrichment": enrichment, "trail": [PipelineState.ENRICHED.value]}

    async def _node_audit(self, state: AuditState) -> Dict[str, Any]:
        enrichment = state["enrichment"]
        synthesis = await self.synthesizer.synthesize(state["text"], enrichment.value, state["target_role"])
        return {"synthesis": synthesis, "trail": [PipelineState.AUDITED.value]}

    async def _node_embed(self, state: AuditState) -> Dict[str, Any]:
        embedding = await self._best_effort(
            "embedding",
            self.indexer.embed_profile(state["synthesis"].audit, state["target_role"]),
        )
        return {"embedding": embedding, "trail": [PipelineState.EMBEDDED.value]}

    async def _node_persist(self, state: AuditState) -> Dict[str, Any]:
        if state.get("identity") is None:
            persistence = Outcome.degraded("no authenticated user; audit was not saved")
        elif self.gateway is None:
            persistence = Outcome.degraded("persistence is not configured")
        else:
            persistence = await self._best_effort("persistence", self._save(state))

        reached = PipelineState.PERSISTED if persistence.ok else PipelineState.PERSIST_FAILED
        return {"persistence": persistence, "trail": [reached.value, PipelineState.DONE.value]}

    async def _save(self, state: AuditState) -> Outcome:
        identity = state["identity"]
        embedding = state["embedding"]
        user = await self.gateway.upsert_user(identity.external_id, identity.email, identity.display_name)
        audit_id = await self.gateway.append_audit(
            user.id,
            state["synthesis"].audit,
            state["enrichment"].value,
            embedding=embedding.value if embedding.ok else None,
            target_role=state["target_role"],
        )
        try:
            await self.gateway.touch_last_audit(user.id)
        except DatabaseError as e:
            logger.warning(f"Saved audit {audit_id} but could not stamp last_audit_at: {e.message}")
        logger.info(f"Saved audit {audit_id} for user {user.id}")
        return Outcome.success({"audit_id": audit_id, "user_id": user.id})

    def _to_payload(self, state: AuditState) -> PipelineResult:
        synthesis: Synthesis = state["synthesis"]
        enrichment: Outcome = state["enrichment"]
        embedding: Outcome = state["embedding"]
        persistence: Outcome = state["persistence"]

        degradations = dict(synthesis.degradations)
        if not enrichment.ok:
            degradations["enrichment"] = enrichment.degraded_reason
        if not embedding.ok:
            degradations["embedding"] = embedding.degraded_reason

        saved = persistence.value or {}
        return PipelineResult(
            file_name=state["document"].filename,
            text_length=len(state["text"]),
            target_role=state["target_role"],
            parsed_data=synthesis.profile,
            audit=synthesis.audit,
            github=enrichment.value,
            embedding=embedding.value if embedding.ok else None,
            persisted=persistence.ok,
            persistence_error=persistence.degraded_reason,
            audit_id=saved.get("audit_id"),
            user_id=saved.get("user_id"),
            degradations=degradations,
            trail=list(state["trail"]),
        )
