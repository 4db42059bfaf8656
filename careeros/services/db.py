from datetime import datetime
from typing import Any, Dict, List, Optional

import motor.motor_asyncio
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from careeros.models.models import (
    AuditResult,
    EnrichmentSignal,
    PersistedAuditRecord,
    ProjectIdea,
    SprintPlan,
    UserRecord,
)
from careeros.models.settings import DatabaseSettings
from careeros.utils.exceptions import DatabaseError, ExceptionContext
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)

USERS = "users"
AUDITS = "career_audits"
PROJECTS = "projects"
SPRINTS = "weekly_sprints"


def create_client(settings: DatabaseSettings) -> motor.motor_asyncio.AsyncIOMotorClient:
    logger.info(f"Initializing MongoDB connection to database: {settings.name}")
    return motor.motor_asyncio.AsyncIOMotorClient(
        settings.url,
        serverSelectionTimeoutMS=int(settings.timeout * 1000),
    )


async def init_indexes(db):
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    try:
        await db[USERS].create_index([("external_id", ASCENDING)], unique=True)
        logger.debug("Created unique index on users.external_id")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug("Index on users.external_id already exists")
        else:
            logger.warning(f"Could not create unique index on users.external_id: {e}")

    # "latest audit" is answered at query time from this index
    try:
        await db[AUDITS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await db[PROJECTS].create_index([("user_id", ASCENDING)])
        await db[SPRINTS].create_index([("user_id", ASCENDING), ("year", ASCENDING), ("week_number", ASCENDING)])
        logger.debug("Created lookup indexes on audits, projects and sprints")
    except Exception as e:
        logger.warning(f"Could not create some lookup indexes: {e}")

    logger.info("Database index initialization completed")


def to_dict(doc):
    if not doc:
        return None
    doc["_id"] = str(doc["_id"])
    return doc


class PersistenceGateway:
    """Keyed user upserts and append-only inserts; never updates or deletes history."""

    def __init__(self, db):
        self.users = db[USERS]
        self.audits = db[AUDITS]
        self.projects = db[PROJECTS]
        self.sprints = db[SPRINTS]

    async def upsert_user(self, external_id: str, email: str, display_name: Optional[str] = None) -> UserRecord:
        with ExceptionContext("upsert_user", logger, wrap_as=DatabaseError, collection=USERS):
            doc = await self.users.find_one_and_update(
                {"external_id": external_id},
                {"$setOnInsert": {
                    "external_id": external_id,
                    "email": email,
                    "name": display_name or None,
                    "subscription_tier": "free",
                    "streak_count": 0,
                    "last_audit_at": None,
                    "created_at": datetime.utcnow(),
                }},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise DatabaseError("User upsert returned no document", operation="upsert_user", collection=USERS)
        doc = to_dict(doc)
        return UserRecord(id=doc.pop("_id"), **doc)

    async def touch_last_audit(self, user_id: str) -> None:
        with ExceptionContext("touch_last_audit", logger, wrap_as=DatabaseError, collection=USERS):
            await self.users.update_one(
                {"_id": ObjectId(user_id)},
                {"$set": {"last_audit_at": datetime.utcnow()}},
            )

    async def append_audit(
        self,
        user_id: str,
        audit: AuditResult,
        enrichment: Optional[EnrichmentSignal],
        embedding: Optional[List[float]] = None,
        target_role: Optional[str] = None,
    ) -> str:
        doc: Dict[str, Any] = {
            "user_id": user_id,
            "target_role": target_role,
            **audit.dict(),
            "github_analysis": enrichment.dict() if enrichment is not None else None,
            "embedding": embedding or None,
            "created_at": datetime.utcnow(),
        }
        with ExceptionContext("append_audit", logger, wrap_as=DatabaseError, collection=AUDITS):
            result = await self.audits.insert_one(doc)
        return str(result.inserted_id)

    async def latest_audit(self, user_id: str) -> Optional[PersistedAuditRecord]:
        with ExceptionContext("latest_audit", logger, wrap_as=DatabaseError, collection=AUDITS):
            doc = await self.audits.find_one({"user_id": user_id}, sort=[("created_at", DESCENDING)])
        if not doc:
            return None
        doc = to_dict(doc)
        return PersistedAuditRecord(id=doc.pop("_id"), **doc)

    async def append_project_ideas(self, user_id: str, ideas: List[ProjectIdea], target_role: str) -> List[str]:
        if not ideas:
            return []
        now = datetime.utcnow()
        docs = [{"user_id": user_id, "role": target_role, **idea.dict(), "created_at": now} for idea in ideas]
        with ExceptionContext("append_project_ideas", logger, wrap_as=DatabaseError, collection=PROJECTS):
            result = await self.projects.insert_many(docs)
        return [str(i) for i in result.inserted_ids]

    async def append_sprint(self, user_id: str, plan: SprintPlan) -> str:
        doc = {
            "user_id": user_id,
            **plan.dict(),
            "completion_rate": 0.0,
            "created_at": datetime.utcnow(),
        }
        with ExceptionContext("append_sprint", logger, wrap_as=DatabaseError, collection=SPRINTS):
            result = await self.sprints.insert_one(doc)
        return str(result.inserted_id)
