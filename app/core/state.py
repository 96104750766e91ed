from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis


@dataclass
class RuntimeState:
    """Per-application runtime state"""
    redis: Optional[Redis] = None
    ytdlp_version: str = "unknown"
    runtime_cookies_file: Optional[str] = None
    active_downloads: int = 0
