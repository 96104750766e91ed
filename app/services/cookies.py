import base64
import binascii
import logging
import os
from typing import Optional

import aiofiles

from app.config.settings import Config

logger = logging.getLogger(__name__)


def decode_cookies(config: Config) -> Optional[str]:
    """Cookie text from the environment; base64 wins over raw text."""
    if config.cookies_base64:
        try:
            return base64.b64decode(config.cookies_base64, validate=False).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.error(f"Failed to decode YTDLP_COOKIES_BASE64: {e}")
            return None
    if config.cookies_text:
        # Single-line env values usually carry escaped newlines
        return config.cookies_text.replace("\\n", "\n").replace("\\t", "\t")
    return None


async def materialize_cookies(config: Config) -> Optional[str]:
    """Write cookies from the environment to the runtime cookie file; returns its path."""
    text = decode_cookies(config)
    if not text:
        return None

    path = config.ytdlp.runtime_cookies_file
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(text if text.endswith("\n") else text + "\n")
    os.chmod(path, 0o600)

    logger.info(f"Cookies from environment written to {path}")
    return path


def resolve_cookies_file(config: Config, runtime_file: Optional[str] = None) -> Optional[str]:
    """Runtime-materialized file first, then the bundled file, else no cookies."""
    for candidate in (runtime_file, config.ytdlp.cookies_file):
        if candidate and os.path.isfile(candidate):
            return candidate
    return None
