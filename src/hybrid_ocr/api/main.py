"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hybrid_ocr import __version__
from hybrid_ocr.api.routes import extraction, health
from hybrid_ocr.logging import configure_logging
from hybrid_ocr.pipeline.coordinator import HybridPdfProcessor


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Tests may pre-seed a processor with fake collaborators.
    if getattr(app.state, "processor", None) is None:
        app.state.processor = HybridPdfProcessor.from_settings()
    yield


app = FastAPI(
    title="hybrid-ocr",
    description="Adaptive hybrid PDF text extraction (text layer + vision OCR)",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(extraction.router, prefix="/extract", tags=["extraction"])
