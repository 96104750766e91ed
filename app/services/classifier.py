"""
Map yt-dlp diagnostics onto HTTP responses.

Matching is case-insensitive substring search over stderr. Rules are checked
in order and the first match wins; anything unmatched is a generic failure.
A wording change in yt-dlp output silently falls through to that generic path.
"""
from dataclasses import dataclass
from typing import Callable, Optional

FORMAT_UNAVAILABLE = "requested format is not available"


@dataclass(frozen=True)
class FailureRule:
    name: str
    matches: Callable[[str], bool]
    status_code: int
    message_key: str
    code: Optional[str] = None


def all_of(*phrases: str) -> Callable[[str], bool]:
    return lambda text: all(p in text for p in phrases)


def any_of(*phrases: str) -> Callable[[str], bool]:
    return lambda text: any(p in text for p in phrases)


def _instagram_auth(text: str) -> bool:
    if "rate-limit reached or login required" in text:
        return True
    return "instagram" in text and any_of("login required", "rate-limit", "rate limit", "429")(text)


FAILURE_RULES = (
    FailureRule(
        "bot verification",
        all_of("sign in to confirm you", "not a bot"),
        403,
        "error.bot_check",
    ),
    FailureRule(
        "host ip block",
        any_of("ip address is blocked", "your ip address", "ip is blocked"),
        403,
        "error.ip_blocked",
        "IP_BLOCKED",
    ),
    FailureRule(
        "geo restriction",
        any_of("not available in your country", "geo restrict", "geo-restrict", "georestrict"),
        451,
        "error.geo_restricted",
        "GEO_RESTRICTED",
    ),
    FailureRule(
        "instagram login or rate limit",
        _instagram_auth,
        429,
        "error.instagram_auth",
        "INSTAGRAM_AUTH_REQUIRED",
    ),
    FailureRule(
        "extractor or runtime mismatch",
        any_of(
            "nsig extraction failed",
            "signature extraction failed",
            "no supported javascript runtime",
            "js runtime",
            "please update yt-dlp",
            "latest version of yt-dlp",
        ),
        502,
        "error.extractor_mismatch",
        "EXTRACTOR_MISMATCH",
    ),
)


def classify_failure(stderr: str) -> Optional[FailureRule]:
    text = (stderr or "").lower()
    for rule in FAILURE_RULES:
        if rule.matches(text):
            return rule
    return None


def is_format_unavailable(stderr: str) -> bool:
    return FORMAT_UNAVAILABLE in (stderr or "").lower()
