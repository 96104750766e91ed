from typing import List, Optional

from pydantic import BaseModel


class DownloadResponse(BaseModel):
    """Successful download response"""
    file: str
    warning: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint"""
    error: str
    code: Optional[str] = None
    details: Optional[str] = None
    attemptedUrls: Optional[List[str]] = None
