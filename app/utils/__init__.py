from .filename import build_output_filename, resolve_in_directory
from .locale import get_locale, safe_url_for_log

__all__ = ["build_output_filename", "get_locale", "resolve_in_directory", "safe_url_for_log"]
