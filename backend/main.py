"""
ShotCoach Backend API

FastAPI application for basketball shot form analysis.

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

API docs available at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router, API_VERSION
from api.settings import get_settings
from api.websocket import websocket_endpoint

settings = get_settings()

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup code before app starts accepting requests,
    and cleanup code when app shuts down.
    """
    # Startup
    logger.info("ShotCoach API starting up...")
    logger.info("API docs: http://localhost:8000/docs")
    logger.info("WebSocket: ws://localhost:8000/ws/analysis")

    if os.path.isfile(settings.model_path):
        logger.info(f"Pose model found at {settings.model_path}")
    else:
        logger.warning(f"Pose model missing at {settings.model_path}; video analysis will fail")

    if settings.enhancer_url:
        logger.info(f"Feedback enhancement enabled: {settings.enhancer_url}")

    yield  # App runs here

    # Shutdown
    logger.info("ShotCoach API shutting down...")


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="ShotCoach API",
    description="""
    **Basketball Shot Form Analyzer**

    Pose-based biomechanics analysis for basketball shooting form.

    ## Features

    - **Video Analysis** sampled every 0.1s with MediaPipe Pose
    - **Shot Validation** (elbow extension, wrist lift, follow-through)
    - **Ten Form Metrics** and a weighted 0-100 score
    - **Coaching Feedback** with strengths, findings and drills

    ## Endpoints

    - `GET /api/health` - Health check
    - `POST /api/analysis/video` - Full video analysis
    - `POST /api/analysis/landmarks` - Analysis of client-detected landmarks
    - `GET /api/analysis/recent/{user_id}` - Stored analyses for a user
    - `WS /ws/analysis` - Video analysis with live progress

    ## WebSocket Protocol

    Connect to `/ws/analysis` and send the video as JSON:
```json
    {
        "type": "start_analysis",
        "data": {"video_base64": "...", "shot_type": "jump_shot"}
    }
```
    Send `{"type": "cancel"}` to stop a running analysis.
    """,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # React dev server
        "http://localhost:5173",      # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "*",                          # Allow all for development
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================

# Include REST API routes
app.include_router(api_router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws/analysis")(websocket_endpoint)


# =============================================================================
# Root endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "name": "ShotCoach API",
        "version": API_VERSION,
        "description": "Basketball Shot Form Analyzer",
        "docs": "/docs",
        "health": "/api/health",
        "websocket": "ws://localhost:8000/ws/analysis"
    }


# =============================================================================
# Run directly (for development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
