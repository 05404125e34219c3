import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meeting_summarizer.api import speakers, summary
from meeting_summarizer.config import settings
from meeting_summarizer.dependencies import get_summarization_service, get_transcription_service
from meeting_summarizer.errors import register_exception_handlers
from meeting_summarizer.services.summarization_service import SummarizationService
from meeting_summarizer.services.transcription import TranscriptionService

VERSION = "1.0.0"
SERVICE_NAME = "Meeting Summarizer API"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# Suppress noisy third-party loggers
logging.getLogger("google_genai").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("anthropic").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Resolve backends up front so the choice shows in the startup log
    summarizer = get_summarization_service().selector.get()
    transcriber = get_transcription_service().transcriber
    logger.info(f"{SERVICE_NAME} {VERSION} starting: summarizer={summarizer.name}, transcriber={transcriber.kind}")
    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="Role-aware meeting transcription and summarization backend",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Mount REST routes
app.include_router(summary.router, prefix="/api/summary", tags=["summary"])
app.include_router(speakers.router, prefix="/api/speakers", tags=["speakers"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION, "service": SERVICE_NAME}


@app.get("/api/health/detailed")
async def health_detailed(
    summarization: SummarizationService = Depends(get_summarization_service),
    transcription: TranscriptionService = Depends(get_transcription_service),
):
    summarizer = summarization.selector.get()
    return {
        "status": "ok",
        "version": VERSION,
        "service": SERVICE_NAME,
        "uptime_secs": round(time.monotonic() - _started_at, 1),
        "summarizer": {
            "backend": summarizer.kind,
            "status": summarizer.status_description(),
        },
        "transcriber": {"backend": transcription.transcriber.kind},
    }
