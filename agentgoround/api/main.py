"""FastAPI application entry point."""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before importing runtime config/services.
load_dotenv()

from .logging_config import setup_logging

setup_logging()

import logging

from .config import settings
from .routers import agents, chat, documents, mcp
from .routers import settings as settings_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="AgentGoRound API",
    description="Coordinator for one-to-one, leader-team and goal-driven agent chats",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(chat.router)
app.include_router(agents.router)
app.include_router(documents.router)
app.include_router(settings_router.router)
app.include_router(mcp.router)

logger.info("=" * 80)
logger.info("FastAPI Application Started")
logger.info("CORS Origins: %s", settings.cors_origins)
logger.info("Data Dir: %s", settings.data_dir)
logger.info("=" * 80)


@app.on_event("startup")
async def startup_event():
    """Initialize data files on startup."""
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    from .services.agent_config_service import AgentConfigService
    from .services.document_service import DocumentService
    from .services.settings_service import SettingsService

    AgentConfigService()
    SettingsService()
    DocumentService()


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "AgentGoRound API",
        "docs": "/docs",
        "health": "/api/health",
    }
