from typing import Optional

QUALITY_HEIGHTS = {
    "480p": 480,
    "720p": 720,
    "1080p": 1080,
    "max1080p": 1080,
}

BEST_VIDEO_FORMAT = "bestvideo+bestaudio/best"


class FormatDecision:
    """Make format decisions"""

    @staticmethod
    def video_selector(quality: Optional[str]) -> str:
        """Height-bounded selector for a quality tier, best available without one"""
        height = QUALITY_HEIGHTS.get(quality) if quality else None
        if height is None:
            return BEST_VIDEO_FORMAT
        return f"bestvideo[height<={height}]+bestaudio/best[height<={height}]"
