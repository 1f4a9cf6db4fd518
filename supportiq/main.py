import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from supportiq.config import LOG_LEVEL
from supportiq.routers import record, sessions
from supportiq.services.analyzer import get_analysis_client
from supportiq.services.session import get_session_store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SupportIQ...")
    client = get_analysis_client()
    if client.available():
        logger.info("Analysis provider: %s (%s)", client.provider, client.model)
    else:
        logger.warning("No analysis provider configured: set GEMINI_API_KEY or OPENAI_API_KEY.")
    yield
    get_session_store().clear()
    logger.info("SupportIQ shut down")


app = FastAPI(
    title="SupportIQ",
    description="Support Coaching Intelligence - diarized transcripts, sentiment and coaching insights",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(sessions.router)
app.include_router(record.router)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def serve_ui():
    return FileResponse(STATIC_DIR / "index.html")
