from fastapi import APIRouter, Request
from pydantic import BaseModel

from hybrid_ocr import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # "ok" | "degraded" (text layer only)
    version: str
    ocr_available: bool
    recognition_backend: str | None = None
    detail: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    processor = request.app.state.processor
    if processor.ocr_available:
        return HealthResponse(
            status="ok",
            version=__version__,
            ocr_available=True,
            recognition_backend=processor.recognizer.name,
        )

    error = processor.recognizer_error
    return HealthResponse(
        status="degraded",
        version=__version__,
        ocr_available=False,
        detail=str(error) if error else "no recognition service configured",
    )
