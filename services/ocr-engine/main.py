"""Minimal OCR service: receives preprocessed images, returns text and confidence.

Images are processed in-memory only and never logged, only their byte counts.
"""

import base64
import binascii
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import settings
from engine import InvalidImageError, get_engine, init_engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_engine_ready = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Locate tesseract and its language packs before serving."""
    global _engine_ready

    try:
        init_engine()
        _engine_ready = True
        logger.info("OCR engine ready")
    except Exception:
        logger.exception("Failed to initialize tesseract")
    yield


app = FastAPI(title="Screen Vault OCR Engine", version="1.0.0", lifespan=lifespan)


class RecognizeRequest(BaseModel):
    image_b64: str
    language: str | None = None


class RecognizeResponse(BaseModel):
    text: str
    confidence: float
    processing_time_ms: int


@app.post("/recognize", response_model=RecognizeResponse)
async def recognize(req: RecognizeRequest):
    """OCR a single image."""
    if not _engine_ready:
        return JSONResponse(
            status_code=503,
            content={"detail": "OCR engine is not ready, please retry"},
        )

    try:
        image_bytes = base64.b64decode(req.image_b64, validate=True)
    except (binascii.Error, ValueError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid base64 image data"},
        )

    language = req.language or settings.DEFAULT_LANGUAGE
    logger.info("Recognize request: image=%d bytes, language=%s", len(image_bytes), language)

    start = time.monotonic()
    try:
        text, confidence = get_engine().recognize(image_bytes, language)
    except InvalidImageError as e:
        return JSONResponse(status_code=400, content={"detail": str(e)})
    except Exception as e:
        logger.error("Recognition failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"detail": f"Recognition failed: {e}"},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info("Recognition completed in %dms (%d chars)", elapsed_ms, len(text))

    return RecognizeResponse(
        text=text,
        confidence=confidence,
        processing_time_ms=elapsed_ms,
    )


@app.get("/health")
async def health():
    """Return engine status and readiness."""
    if not _engine_ready:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "ready": False},
        )

    return {
        "status": "healthy",
        "tesseract_version": get_engine().version,
        "default_language": settings.DEFAULT_LANGUAGE,
        "ready": True,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
