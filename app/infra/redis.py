from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from rich.console import Console

from app.config.settings import RedisConfig

console = Console()

ACTIVE_COUNTER_KEY = "active_downloads_count"
ACTIVE_SLOT_PATTERN = "active_download:*"


async def init_redis(redis_config: RedisConfig) -> Optional[aioredis.Redis]:
    """Connect to Redis when configured; returns None to fall back to local state"""
    if not redis_config.url:
        console.print("[dim]Redis disabled, using in-process download counter[/dim]")
        return None

    try:
        redis_client = aioredis.from_url(
            redis_config.url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=redis_config.socket_timeout
        )
        await redis_client.ping()

        # Recover active downloads counter
        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = await redis_client.scan(
                cursor,
                match=ACTIVE_SLOT_PATTERN,
                count=100
            )
            keys.extend(partial_keys)
            if cursor == 0:
                break

        await redis_client.set(ACTIVE_COUNTER_KEY, len(keys))

        if len(keys) > 0:
            console.print(f"[yellow]✓ Redis connected (recovered {len(keys)} active downloads)[/yellow]")
        else:
            console.print("[green]✓ Redis connected[/green]")
        return redis_client

    except (RedisError, OSError) as e:
        console.print(f"[yellow]⚠ Redis connection failed: {str(e)}[/yellow]")
        return None


async def close_redis(redis_client: Optional[aioredis.Redis]) -> None:
    """Close Redis connection"""
    if redis_client:
        await redis_client.aclose()
        console.print("[dim]✓ Redis connection closed[/dim]")
