from .errors import DownloadError, register_exception_handlers
from .state import RuntimeState

__all__ = ["DownloadError", "RuntimeState", "register_exception_handlers"]
