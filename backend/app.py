from pathlib import Path

import logging
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from backend.api.routes import router as api_router
from backend.config import settings
from backend.logging_config import configure_logging
from backend.services.errors import (
    GenerationError,
    GenerationInProgressError,
    JobNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

configure_logging()

FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"

_ERROR_STATUS_CODES = {
    ValidationError: 400,
    JobNotFoundError: 404,
    GenerationInProgressError: 409,
}


def _local_origins():
    hosts = {settings.app_host, "localhost", "127.0.0.1"}
    return sorted(f"http://{host}:{settings.app_port}" for host in hosts)


app = FastAPI(title="Veo Video Studio", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_local_origins(),
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(api_router)

videos_path = Path(settings.output_local_dir)
videos_path.mkdir(parents=True, exist_ok=True)

app.mount("/static", StaticFiles(directory=str(FRONTEND_DIR)), name="static")
app.mount("/videos", StaticFiles(directory=str(videos_path)), name="videos")


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    status_code = next(
        (code for error_type, code in _ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        502,
    )
    logger.warning("Rejected %s %s with %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning("Malformed form on %s: %s", request.url.path, errors)
    fields = ", ".join(".".join(str(part) for part in error.get("loc", ())[1:]) for error in errors)
    return JSONResponse(
        status_code=400,
        content={"detail": f"Invalid form fields: {fields}" if fields else "Invalid request.", "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", include_in_schema=False)
async def serve_index():
    index_file = FRONTEND_DIR / "index.html"
    if not index_file.is_file():
        raise HTTPException(status_code=404, detail="Front-end is not installed next to the backend package.")
    return FileResponse(index_file)


def main() -> None:
    uvicorn.run("backend.app:app", host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    main()
