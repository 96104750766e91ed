"""
Rewrite well known share-link shapes into canonical URLs.

Some hosting environments fail more often on ephemeral share URLs than on
canonical ones, so the canonical form is offered as a second candidate after
the URL the user sent.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional
from urllib.parse import ParseResult, parse_qsl, urlencode, urlparse, urlunparse

logger = logging.getLogger(__name__)

YOUTUBE_CANONICAL_HOST = "www.youtube.com"
INSTAGRAM_CANONICAL_HOST = "www.instagram.com"
FACEBOOK_CANONICAL_HOST = "www.facebook.com"

_YOUTUBE_SHORTS_PATH = re.compile(r"^/shorts/([A-Za-z0-9_-]+)/?$")
_YOUTU_BE_PATH = re.compile(r"^/([A-Za-z0-9_-]+)/?$")
_INSTAGRAM_MEDIA_PATH = re.compile(r"^/(?:share/)?(reel|reels|p|tv)/([A-Za-z0-9_-]+)/?$")


@dataclass(frozen=True)
class NormalizationRule:
    """Rewrite applied to URLs whose host is in hosts; returns None when it does not apply"""
    name: str
    hosts: FrozenSet[str]
    rewrite: Callable[[ParseResult], Optional[str]]


def _watch_url(video_id: str, query: str) -> str:
    params = [("v", video_id)] + [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if k != "v"]
    return urlunparse(("https", YOUTUBE_CANONICAL_HOST, "/watch", "", urlencode(params), ""))


def _youtu_be(parsed: ParseResult) -> Optional[str]:
    match = _YOUTU_BE_PATH.match(parsed.path)
    if not match:
        return None
    return _watch_url(match.group(1), parsed.query)


def _youtube(parsed: ParseResult) -> Optional[str]:
    match = _YOUTUBE_SHORTS_PATH.match(parsed.path)
    if match:
        return _watch_url(match.group(1), parsed.query)
    if parsed.hostname != YOUTUBE_CANONICAL_HOST:
        return urlunparse(parsed._replace(scheme="https", netloc=YOUTUBE_CANONICAL_HOST))
    return None


def _instagram(parsed: ParseResult) -> Optional[str]:
    match = _INSTAGRAM_MEDIA_PATH.match(parsed.path)
    if match:
        kind, media_id = match.groups()
        if kind == "reels":
            kind = "reel"
        return f"https://{INSTAGRAM_CANONICAL_HOST}/{kind}/{media_id}/"
    if parsed.hostname != INSTAGRAM_CANONICAL_HOST:
        return urlunparse(parsed._replace(scheme="https", netloc=INSTAGRAM_CANONICAL_HOST))
    return None


def _facebook(parsed: ParseResult) -> Optional[str]:
    return urlunparse(parsed._replace(scheme="https", netloc=FACEBOOK_CANONICAL_HOST))


NORMALIZATION_RULES = (
    NormalizationRule("youtu.be short link", frozenset({"youtu.be", "www.youtu.be"}), _youtu_be),
    NormalizationRule(
        "youtube canonical host",
        frozenset({"youtube.com", "www.youtube.com", "m.youtube.com"}),
        _youtube,
    ),
    NormalizationRule(
        "instagram canonical media path",
        frozenset({"instagram.com", "www.instagram.com", "m.instagram.com", "instagr.am", "www.instagr.am"}),
        _instagram,
    ),
    NormalizationRule(
        "facebook canonical host",
        frozenset({"m.facebook.com", "mobile.facebook.com", "fb.com", "www.fb.com"}),
        _facebook,
    ),
)


def normalize_url(url: str) -> str:
    """Return the canonical form of url, or url itself when no rule applies."""
    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
        for rule in NORMALIZATION_RULES:
            if host not in rule.hosts:
                continue
            rewritten = rule.rewrite(parsed)
            if rewritten:
                logger.debug(f"Normalized {url} -> {rewritten} ({rule.name})")
                return rewritten
            return url
    except ValueError as e:
        logger.debug(f"Could not normalize {url}: {e}")
    return url


def candidate_urls(url: str) -> List[str]:
    """Attempt order: the URL as sent, then its canonical form when different."""
    normalized = normalize_url(url)
    if normalized != url:
        return [url, normalized]
    return [url]
