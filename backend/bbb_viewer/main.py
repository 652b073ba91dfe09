import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette import status

from bbb_viewer.api.v1.router import api_router
from bbb_viewer.core.config import settings
from bbb_viewer.modules.moodle.errors import ApiFault, NotFoundFault, TransportFault
from bbb_viewer.web.routes import STATIC_DIR
from bbb_viewer.web.routes import router as web_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.APP_VERSION)

app.include_router(api_router, prefix="/api/v1")
app.include_router(web_router)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/health")
def health_check():
    return {"status": "ok"}


def _error_payload(code: str, message: str, details: object | None = None) -> dict[str, object]:
    error: dict[str, object] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}


@app.exception_handler(HTTPException)
def handle_http_exception(request: Request, exc: HTTPException):
    logging.getLogger("api").warning("HTTP %s %s: %s", exc.status_code, request.url.path, exc.detail)
    payload = _error_payload("http_error", str(exc.detail))
    payload["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=payload)


@app.exception_handler(ApiFault)
def handle_moodle_fault(request: Request, exc: ApiFault):
    logging.getLogger("api").warning(
        "Moodle fault on %s: %s (function=%s, errorcode=%s)",
        request.url.path,
        exc.message,
        exc.function,
        exc.errorcode,
    )
    if isinstance(exc, NotFoundFault):
        status_code = status.HTTP_404_NOT_FOUND
        code = "not_found"
    elif isinstance(exc, TransportFault):
        status_code = status.HTTP_502_BAD_GATEWAY
        code = "moodle_unavailable"
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
        code = "moodle_error"
    details = {"function": exc.function, "errorcode": exc.errorcode}
    return JSONResponse(status_code=status_code, content=_error_payload(code, exc.message, details))


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    payload = _error_payload("validation_error", "Invalid request", exc.errors())
    payload["detail"] = exc.errors()
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logging.getLogger("api").exception("Unhandled error on %s", request.url.path)
    payload = _error_payload("server_error", "Internal server error")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
