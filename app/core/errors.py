import functools
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.i18n import i18n
from app.utils.locale import get_locale


class DownloadError(Exception):
    """A failed download request, rendered as a JSON error body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Optional[str] = None,
        code: Optional[str] = None,
        attempted_urls: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details
        self.code = code
        self.attempted_urls = attempted_urls

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details is not None:
            payload["details"] = self.details
        if self.attempted_urls is not None:
            payload["attemptedUrls"] = self.attempted_urls
        return payload


def first_validation_message(exc: RequestValidationError) -> str:
    """Pick the message key of the first body error, in field order."""
    for error in exc.errors():
        loc = error.get("loc", ())
        if error.get("type") == "json_invalid":
            return "error.invalid_body"
        if error.get("type") == "value_error":
            reason = error.get("ctx", {}).get("error")
            if reason is not None:
                return str(reason)
            return error.get("msg", "").replace("Value error, ", "", 1)
        # Missing or non-object body behaves like a missing videoUrl
        if tuple(loc[:1]) == ("body",):
            return "error.missing_url"
    return "error.invalid_body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DownloadError)
    async def download_error_handler(request: Request, exc: DownloadError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        locale = get_locale(request.headers.get("accept-language"), request.app.state.config.i18n)
        _ = functools.partial(i18n.get, locale=locale)
        return JSONResponse(status_code=400, content={"error": _(first_validation_message(exc))})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
