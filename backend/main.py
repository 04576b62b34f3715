import logging

import uvicorn
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings
from description_llm import DescriptionGenerator
from models import ApiKeysConfigured, HealthResponse, ScanResult
from scanner import ArtworkScanner, utc_timestamp
from vision_api import VisionClient

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_scanner(request: Request) -> ArtworkScanner:
    return request.app.state.scanner


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _too_large(extra: dict) -> JSONResponse:
    return JSONResponse(
        status_code=413, content={**extra, "error": "Image exceeds 50 MB limit"}
    )


async def _scan_upload(
    image: UploadFile | None, scanner: ArtworkScanner, endpoint: str, extra: dict
):
    if image is None:
        return JSONResponse(status_code=400, content={**extra, "error": "No image uploaded"})

    # size is known for spooled uploads; check it before buffering the body
    if image.size is not None and image.size > MAX_UPLOAD_BYTES:
        return _too_large(extra)

    data = await image.read()
    if len(data) > MAX_UPLOAD_BYTES:
        return _too_large(extra)

    logger.info("%s: processing %s (%d bytes)", endpoint, image.filename, len(data))
    try:
        return await scanner.scan(data)
    except Exception as exc:
        logger.exception("%s failed", endpoint)
        return JSONResponse(
            status_code=500,
            content={
                **extra,
                "error": "Image classification failed",
                "details": str(exc),
            },
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    logger.info(
        "Google Cloud API key: %s",
        "loaded" if settings.google_cloud_api_key else "missing",
    )
    logger.info("Groq API key: %s", "loaded" if settings.groq_api_key else "missing")

    app = FastAPI(title="Artwork Scanner Backend")
    app.state.settings = settings
    app.state.scanner = ArtworkScanner(
        VisionClient(settings), DescriptionGenerator(settings)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
        ],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("Unhandled error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)},
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check(settings: Settings = Depends(get_settings)):
        return HealthResponse(
            status="Server is running",
            timestamp=utc_timestamp(),
            apiKeysConfigured=ApiKeysConfigured(
                googleCloud=bool(settings.google_cloud_api_key),
                groq=bool(settings.groq_api_key),
            ),
        )

    # The frontend posts here
    @app.post("/api/scan/vision", response_model=ScanResult)
    async def scan_vision(
        image: UploadFile | None = File(None),
        scanner: ArtworkScanner = Depends(get_scanner),
    ):
        return await _scan_upload(image, scanner, "Vision API", {"status": "error"})

    @app.post("/api/classify", response_model=ScanResult)
    async def classify(
        image: UploadFile | None = File(None),
        scanner: ArtworkScanner = Depends(get_scanner),
    ):
        return await _scan_upload(image, scanner, "Classify API", {})

    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=_settings.port)
