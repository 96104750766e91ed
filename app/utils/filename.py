import os
import secrets
import string
import time
from typing import Optional

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


def build_output_filename(ext: str, prefix: str = "video") -> str:
    """Timestamp plus a short random base36 suffix, e.g. video_1718000000000_k3x9qa.mp4"""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}.{ext}"


def resolve_in_directory(directory: str, requested: str) -> Optional[str]:
    """
    Map a client supplied name onto a regular file directly inside directory.
    Directory components are discarded, so traversal segments never escape.
    """
    name = os.path.basename(requested.replace("\\", "/"))
    if not name or name in (".", ".."):
        return None

    path = os.path.join(directory, name)
    if not os.path.isfile(path):
        return None
    return path
