from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careeros.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    install_error_handling,
)
from careeros.routers import dashboard, match, planning, resume
from careeros.services.db import PersistenceGateway, create_client, init_indexes
from careeros.services.github import GitHubEnricher
from careeros.services.indexer import EmbeddingIndexer
from careeros.services.inference import InferenceClient
from careeros.services.matching import JobMatcher
from careeros.services.pipeline import AuditPipeline
from careeros.utils.config import load_settings
from careeros.utils.logging_config import configure_for_environment, get_logger

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("CareerOS API starting up...")
    settings = load_settings()

    inference = InferenceClient(settings.llm_settings, settings.embedding_settings)
    enricher = GitHubEnricher(settings.github_settings)

    mongo = create_client(settings.database_settings)
    db = mongo[settings.database_settings.name]
    gateway = PersistenceGateway(db)

    try:
        await init_indexes(db)
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    pipeline_settings = settings.pipeline_settings
    app.state.settings = settings
    app.state.inference = inference
    app.state.gateway = gateway
    app.state.pipeline = AuditPipeline(inference, enricher, gateway, pipeline_settings)
    app.state.matcher = JobMatcher(
        EmbeddingIndexer(inference, timeout=pipeline_settings.stage_timeout),
        top_k=pipeline_settings.match_top_k,
    )
    logger.info("CareerOS API startup completed")

    yield

    logger.info("CareerOS API shutting down...")
    await inference.aclose()
    await enricher.aclose()
    mongo.close()
    logger.info("CareerOS API shutdown completed")


app = FastAPI(title="CareerOS API", version=VERSION, lifespan=lifespan)

# The last middleware added runs outermost, so the exception handler goes last
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PerformanceMiddleware, slow_request_threshold=30.0)
app.add_middleware(ExceptionHandlerMiddleware)
install_error_handling(app)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the CareerOS API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat() + "Z"}


app.include_router(resume.router, prefix="/api")
app.include_router(match.router, prefix="/api")
app.include_router(planning.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")

logger.info("CareerOS API initialized successfully")
