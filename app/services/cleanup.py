import asyncio
import glob
import logging
import os
import time
from typing import Optional, Set

logger = logging.getLogger(__name__)


def remove_file(path: str) -> bool:
    """Best-effort unlink; a file that is already gone is not an error."""
    try:
        os.remove(path)
        logger.info(f"Removed file: {os.path.basename(path)}")
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.error(f"cleanup error for {path}: {e}")
        return False


def remove_partial_files(output_path: str) -> int:
    """Remove everything yt-dlp wrote for one output name: the file, .part and per-format fragments"""
    root, _ = os.path.splitext(output_path)
    removed = 0
    for path in glob.glob(f"{glob.escape(root)}.*"):
        if os.path.isfile(path) and remove_file(path):
            removed += 1
    return removed


class CleanupScheduler:
    """Deletes produced files once their time-to-live elapses"""

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._timers: Set[asyncio.TimerHandle] = set()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    @property
    def pending(self) -> int:
        return len(self._timers)

    def schedule(self, path: str) -> Optional[asyncio.TimerHandle]:
        if not self.enabled:
            return None

        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def _expire():
            self._timers.discard(handle)
            remove_file(path)

        handle = loop.call_later(self.ttl_seconds, _expire)
        self._timers.add(handle)
        return handle

    def cancel_all(self) -> None:
        """Drop pending timers at shutdown; files stay for the next startup sweep."""
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()


def cleanup_old_files(downloads_dir: str, ttl_seconds: float) -> int:
    """Remove files older than the TTL, for timers lost across a restart"""
    if ttl_seconds <= 0 or not os.path.isdir(downloads_dir):
        return 0

    removed = 0
    now = time.time()
    for filename in os.listdir(downloads_dir):
        filepath = os.path.join(downloads_dir, filename)
        try:
            if not os.path.isfile(filepath):
                continue
            if now - os.path.getmtime(filepath) > ttl_seconds:
                if remove_file(filepath):
                    removed += 1
        except OSError as e:
            logger.error(f"Error during cleanup of {filename}: {e}")
    return removed
