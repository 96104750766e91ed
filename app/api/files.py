import functools
import os

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse

from app.core.logging import log_debug, log_info, log_warning
from app.i18n import i18n
from app.utils.filename import resolve_in_directory
from app.utils.locale import get_locale

router = APIRouter()


@router.get("/force-download/{filename:path}")
async def force_download(request: Request, filename: str):
    """Serve a produced file as an attachment; only base names inside the downloads directory resolve"""
    config = request.app.state.config
    path = resolve_in_directory(config.download.downloads_dir, filename)

    if path is None:
        log_warning(request, f"Force download of unknown file: {filename}")
        locale = get_locale(request.headers.get("accept-language"), config.i18n)
        _ = functools.partial(i18n.get, locale=locale)
        return PlainTextResponse(_("error.file_not_found"), status_code=404)

    log_debug(request, f"Resolved {filename} to {path}", path=path)
    log_info(request, f"Force download: {filename}")
    return FileResponse(
        path,
        media_type="application/octet-stream",
        filename=os.path.basename(path),
    )
