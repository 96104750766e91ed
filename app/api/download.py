from fastapi import APIRouter, Request

from app.core.errors import DownloadError
from app.core.logging import log_error, log_info
from app.infra.concurrency import concurrency_limiter, release_download_slot
from app.models.request import DownloadRequest
from app.models.response import DownloadResponse, ErrorResponse
from app.utils.locale import get_locale, safe_url_for_log

router = APIRouter()

ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 403, 429, 451, 500, 502, 503, 504)
}


@router.post(
    "/download",
    response_model=DownloadResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def download_video(request: Request, download_request: DownloadRequest):
    """Download a video (or its audio) to the server and return its public path"""
    config = request.app.state.config
    locale = get_locale(request.headers.get("accept-language"), config.i18n)

    # Acquired only after the body validated, so rejected requests never hold a slot
    await concurrency_limiter(request)

    intent = download_request.to_intent()
    log_info(request, f"Download requested: {safe_url_for_log(intent.url)} format={download_request.format} quality={intent.quality}")

    try:
        result = await request.app.state.download_service.handle(intent, locale)
    except DownloadError as e:
        log_error(request, f"Download failed with {e.status_code}: {e.message}")
        raise
    finally:
        await release_download_slot(request)

    log_info(request, f"Download finished: {result.file}")
    return DownloadResponse(file=result.file, warning=result.warning)
