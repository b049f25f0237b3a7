"""FastAPI application main file"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from dotenv import load_dotenv

from sheetchat.config import settings
from sheetchat.core.database import init_db
from sheetchat.core.exceptions import setup_error_handlers
from sheetchat.api.v1 import router as api_router
from sheetchat.services.ai_service import AIService
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import build_identity_resolver

# Load environment variables
load_dotenv()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the long-lived provider handles once and share them via app.state"""
    init_db()
    app.state.sheets_service = GoogleSheetsService()
    app.state.ai_service = AIService.from_settings(settings)
    app.state.identity_resolver = build_identity_resolver(settings)
    logger.info(f"{settings.PROJECT_NAME} started in {settings.AUTH_MODE} mode")
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Connect a Google Sheet, chat about it, and write edits back.",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handlers(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.PROJECT_NAME} API",
        "version": settings.VERSION,
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION
    }


@app.get("/embed.js", include_in_schema=False)
async def embed_script():
    """Script that embeds the chat widget for the sheet named in its data-sheet-url attribute"""
    return FileResponse(STATIC_DIR / "embed.js", media_type="application/javascript")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
