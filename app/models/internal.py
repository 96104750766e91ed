from typing import Optional

from pydantic import BaseModel


class DownloadIntent(BaseModel):
    """Internal download intent (separated from HTTP concerns)"""
    url: str
    audio_only: bool
    quality: Optional[str] = None

    @property
    def ext(self) -> str:
        return "mp3" if self.audio_only else "mp4"


class ExtractionResult(BaseModel):
    """Outcome of one yt-dlp run"""
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    spawn_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.spawn_error is None
