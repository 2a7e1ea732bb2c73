import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cloud_uploader.core.templates import render_template
from cloud_uploader.services.upload_pipeline import UploadFailed

logger = logging.getLogger("cloud_uploader")


def _wants_json(request: Request) -> bool:
    if request.url.path.startswith("/api"):
        return True
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UploadFailed)
    async def upload_failed_handler(request: Request, exc: UploadFailed):
        return JSONResponse({"detail": "Upload failed", "error": exc.message}, status_code=500)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if hasattr(exc, "detail") else "Not Found"
        if _wants_json(request):
            return JSONResponse({"detail": detail}, status_code=404)
        detail_text = (
            detail
            if detail not in (None, "", "Not found", "Not Found")
            else "The page you were looking for isn't here."
        )
        html = render_template("errors/404.html", {"detail": detail_text})
        return HTMLResponse(content=html, status_code=404)
