from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from app.models.internal import DownloadIntent

ALLOWED_SCHEMES = ("http", "https")
ALLOWED_FORMATS = ("audio", "video")
ALLOWED_QUALITIES = ("480p", "720p", "1080p", "max1080p")


class DownloadRequest(BaseModel):
    """
    POST /download body.
    Validators raise i18n message keys; checks run in field order so the
    first failing field decides the 400 message.
    """
    videoUrl: Any = Field(None, validate_default=True, description="http(s) URL of the video page")
    format: Any = Field(None, validate_default=True, description="'audio' or 'video'")
    quality: Any = Field(None, validate_default=True, description="Optional height bound for video")

    @field_validator("videoUrl")
    @classmethod
    def validate_video_url(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("error.missing_url")

        try:
            parsed = urlparse(v)
            # Raises ValueError on a malformed port
            parsed.port
        except ValueError:
            raise ValueError("error.invalid_url")

        if not parsed.scheme:
            raise ValueError("error.invalid_url")
        if parsed.scheme.lower() not in ALLOWED_SCHEMES:
            raise ValueError("error.unsupported_protocol")
        if not parsed.hostname:
            raise ValueError("error.invalid_url")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        if v not in ALLOWED_FORMATS:
            raise ValueError("error.invalid_format")
        return v

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v):
        """Empty values mean best available"""
        if not v:
            return None
        if v not in ALLOWED_QUALITIES:
            raise ValueError("error.invalid_quality")
        return v

    def to_intent(self) -> DownloadIntent:
        """Convert to download intent"""
        return DownloadIntent(
            url=self.videoUrl,
            audio_only=self.format == "audio",
            quality=self.quality,
        )
