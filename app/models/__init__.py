from .internal import DownloadIntent, ExtractionResult
from .request import DownloadRequest
from .response import DownloadResponse, ErrorResponse

__all__ = ["DownloadIntent", "DownloadRequest", "DownloadResponse", "ErrorResponse", "ExtractionResult"]
