"""FastAPI screen vault service: OCR for screenshot batches plus table detection.

Uploads are preprocessed and sent to the OCR engine service, results are kept
in memory, and batches of two or more screenshots are analyzed for shared
structure (fitness summaries, transfers, numbered lists, labelled forms).
Images are processed in-memory only; only byte counts and file names are logged.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from config import settings
from export import results_to_csv, results_to_json, table_filename, table_to_csv
from models import (
    AnalyzeRequest,
    AnalyzeResponse,
    OcrResult,
    ProcessFilesResponse,
    ResultsExportRequest,
    StructuredExportRequest,
)
from ocr_client import OCRClient
from pattern_analyzer import analyze_batch
from recognition import Upload, process_uploads
from storage import storage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_ocr_client: OCRClient | None = None
_ocr_available: bool = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the OCR client on startup if configured."""
    global _ocr_client, _ocr_available

    if not settings.OCR_SERVICE_URL:
        logger.info("OCR service not configured (OCR_SERVICE_URL is empty), uploads disabled")
        _ocr_available = False
    else:
        logger.info("Connecting to OCR service at %s", settings.OCR_SERVICE_URL)
        _ocr_client = OCRClient()
        _ocr_available = True

        health = _ocr_client.health()
        if health.get("ready"):
            logger.info("OCR service is ready: %s", health)
        else:
            logger.warning("OCR service not yet ready: %s", health)

    yield

    if _ocr_client is not None:
        _ocr_client.close()


app = FastAPI(title="Screen Vault", version="1.0.0", lifespan=lifespan)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/process-files", response_model=ProcessFilesResponse)
async def process_files(files: list[UploadFile] | None = File(None)):
    """OCR a batch of screenshots and detect structured tables across them."""
    if not files:
        return _error(400, "No se han subido archivos")

    if len(files) > settings.MAX_FILES:
        return _error(400, f"Se permiten como máximo {settings.MAX_FILES} archivos")

    if not _ocr_available or _ocr_client is None:
        return _error(503, "El servicio de OCR no está disponible")

    uploads: list[Upload] = []
    for file in files:
        if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
            return _error(400, "Solo se permiten archivos PNG, JPG y JPEG")

        data = await file.read()
        if len(data) > settings.MAX_UPLOAD_BYTES:
            return _error(400, f"El archivo {file.filename} supera el tamaño máximo permitido")

        uploads.append(Upload(file.filename or "", file.content_type, data))

    logger.info(
        "Processing %d files (%d bytes total)",
        len(uploads),
        sum(len(u.data) for u in uploads),
    )

    # process_uploads blocks on sync httpx calls
    results = await run_in_threadpool(process_uploads, uploads, _ocr_client, storage)
    if not results:
        return _error(500, "No se pudieron procesar los archivos")

    structured_data = analyze_batch(r.to_document() for r in results) if len(files) > 1 else []

    return ProcessFilesResponse(
        message=f"Se procesaron {len(results)} de {len(files)} archivos correctamente",
        results=results,
        structured_data=structured_data,
        total_files=len(files),
        processed_files=len(results),
    )


@app.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest):
    """Detect structured tables in already-extracted texts."""
    return AnalyzeResponse(structured_data=analyze_batch(request.documents))


@app.get("/api/results", response_model=list[OcrResult])
async def list_results():
    return storage.get_all_ocr_results()


@app.delete("/api/results")
async def clear_results():
    storage.clear_ocr_results()
    return {"message": "Todos los resultados han sido eliminados"}


@app.post("/api/download/csv")
async def download_csv(request: ResultsExportRequest):
    return _attachment(results_to_csv(request.results), "text/csv; charset=utf-8", "resultados_ocr.csv")


@app.post("/api/download/json")
async def download_json(request: ResultsExportRequest):
    return JSONResponse(
        content=results_to_json(request.results),
        headers={"Content-Disposition": 'attachment; filename="resultados_ocr.json"'},
    )


@app.post("/api/download/structured-csv")
async def download_structured_csv(request: StructuredExportRequest):
    table = request.structured_data
    return _attachment(table_to_csv(table), "text/csv; charset=utf-8", table_filename(table))


@app.get("/health")
async def health():
    """Return service status and OCR availability."""
    base = {
        "status": "healthy",
        "ocr_available": _ocr_available,
    }

    if _ocr_available and _ocr_client is not None:
        base["ocr_health"] = _ocr_client.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
