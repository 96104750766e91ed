import functools
import logging
import uuid

from fastapi import HTTPException, Request
from redis.exceptions import RedisError

from app.i18n import i18n
from app.infra.redis import ACTIVE_COUNTER_KEY
from app.utils.locale import get_locale

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """
    Caps in-flight downloads. Uses an atomic Redis counter when Redis is
    connected so several workers share the cap, otherwise a per-app counter.
    """

    def __init__(self):
        self.lua_script = """
        local counter_key = KEYS[1]
        local slot_key = KEYS[2]
        local limit = tonumber(ARGV[1])
        local slot_ttl = tonumber(ARGV[2])
        local counter_ttl = tonumber(ARGV[3])

        local current = tonumber(redis.call('GET', counter_key) or "0")
        if current >= limit then
            return 0
        end

        redis.call('INCR', counter_key)
        redis.call('EXPIRE', counter_key, counter_ttl)
        redis.call('SETEX', slot_key, slot_ttl, "1")

        return 1
        """

    async def __call__(self, request: Request):
        config = request.app.state.config
        runtime = request.app.state.runtime
        limit = config.download.max_concurrent

        if runtime.redis is not None:
            allowed = await self._acquire_redis(request, limit)
        else:
            allowed = runtime.active_downloads < limit
            if allowed:
                runtime.active_downloads += 1
                request.state.download_slot_key = None
                request.state.download_slot_acquired = True

        if not allowed:
            locale = get_locale(request.headers.get("accept-language"), config.i18n)
            _ = functools.partial(i18n.get, locale=locale)
            raise HTTPException(
                status_code=503,
                detail=_("error.server_busy", max=limit)
            )
        return True

    async def _acquire_redis(self, request: Request, limit: int) -> bool:
        config = request.app.state.config
        redis = request.app.state.runtime.redis
        slot_key = f"active_download:{uuid.uuid4()}"
        # Downloads may run once per candidate plus a retry each
        slot_ttl = int(config.download.timeout_seconds * 4) + 60
        counter_ttl = slot_ttl * 2

        try:
            allowed = await redis.eval(
                self.lua_script,
                2,
                ACTIVE_COUNTER_KEY,
                slot_key,
                limit,
                slot_ttl,
                counter_ttl
            )
        except RedisError as e:
            # Fail open rather than refusing every download when Redis hiccups
            logger.warning(f"Concurrency check skipped: {e}")
            return True

        if allowed:
            request.state.download_slot_key = slot_key
            request.state.download_slot_acquired = True
        return bool(allowed)


async def release_download_slot(request: Request):
    """Release download slot"""
    if not getattr(request.state, "download_slot_acquired", False):
        return
    request.state.download_slot_acquired = False

    runtime = request.app.state.runtime
    slot_key = getattr(request.state, "download_slot_key", None)

    if slot_key is None:
        runtime.active_downloads = max(0, runtime.active_downloads - 1)
        return

    if runtime.redis is not None:
        try:
            await runtime.redis.delete(slot_key)
            await runtime.redis.decr(ACTIVE_COUNTER_KEY)
        except RedisError as e:
            logger.warning(f"Failed to release download slot {slot_key}: {e}")


concurrency_limiter = ConcurrencyLimiter()
