from fastapi import APIRouter, Request
from redis.exceptions import RedisError

from app.i18n import i18n
from app.infra.redis import ACTIVE_COUNTER_KEY
from app.services.cookies import resolve_cookies_file

router = APIRouter()

SERVICE_NAME = "video-downloader-api"


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": i18n.get("health.status"),
        "service": SERVICE_NAME,
    }


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    return {"status": i18n.get("health.status")}


@router.get("/health/full")
async def health_check_full(request: Request):
    """Detailed health check"""
    config = request.app.state.config
    runtime = request.app.state.runtime

    redis_status = "disabled"
    active_downloads = runtime.active_downloads

    if runtime.redis is not None:
        try:
            await runtime.redis.ping()
            redis_status = "connected"
            active_downloads = int(await runtime.redis.get(ACTIVE_COUNTER_KEY) or 0)
        except RedisError:
            redis_status = "disconnected"

    return {
        "status": i18n.get("health.status"),
        "ytdlp_version": runtime.ytdlp_version,
        "js_runtime": config.ytdlp.js_runtime,
        "redis": redis_status,
        "active_downloads": active_downloads,
        "max_concurrent": config.download.max_concurrent,
        "cookies": resolve_cookies_file(config, runtime.runtime_cookies_file) is not None,
    }
