import functools
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from app.config.settings import Config
from app.core.errors import DownloadError
from app.i18n import i18n
from app.models.internal import DownloadIntent, ExtractionResult
from app.services.classifier import classify_failure, is_format_unavailable
from app.services.cleanup import CleanupScheduler, remove_partial_files
from app.services.cookies import resolve_cookies_file
from app.services.normalizer import candidate_urls
from app.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder
from app.utils.filename import build_output_filename
from app.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)

Runner = Callable[[List[str], float], Awaitable[ExtractionResult]]


@dataclass
class DownloadResult:
    file: str
    path: str
    warning: Optional[str] = None


class DownloadService:
    """Runs yt-dlp over the candidate URLs of one request and serves the result"""

    def __init__(
        self,
        config: Config,
        cleanup: CleanupScheduler,
        runtime_cookies_file: Optional[str] = None,
        runner: Optional[Runner] = None,
    ):
        self.config = config
        self.cleanup = cleanup
        self.runtime_cookies_file = runtime_cookies_file
        self.commands = YTDLPCommandBuilder(config)
        self.runner = runner or SubprocessExecutor.run

    @property
    def downloads_dir(self) -> str:
        return self.config.download.downloads_dir

    async def attempt(
        self,
        url: str,
        output_path: str,
        audio_only: bool,
        quality: Optional[str],
    ) -> ExtractionResult:
        """One yt-dlp run for one candidate URL"""
        cookies = resolve_cookies_file(self.config, self.runtime_cookies_file)
        cmd = self.commands.build_download_command(
            url,
            output_path,
            audio_only=audio_only,
            quality=quality,
            cookies_file=cookies,
        )
        logger.info(i18n.get("log.attempt", url=safe_url_for_log(url), quality=quality or "best"))
        return await self.runner(cmd, self.config.download.timeout_seconds)

    def _check_aborted(self, result: ExtractionResult, _: Callable[..., str]) -> None:
        """Spawn failures and timeouts end the request; no further candidates are tried."""
        if result.spawn_error is not None:
            raise DownloadError(500, _("error.spawn_failed"))
        if result.timed_out:
            raise DownloadError(504, _("error.timeout"))

    async def handle(self, intent: DownloadIntent, locale: Optional[str] = None) -> DownloadResult:
        """
        Try each candidate URL in order, relaxing the quality bound once per
        candidate when yt-dlp reports the requested format as unavailable.
        Raises DownloadError for every failure path.
        """
        _ = functools.partial(i18n.get, locale=locale)

        filename = build_output_filename(intent.ext)
        output_path = os.path.join(self.downloads_dir, filename)
        candidates = candidate_urls(intent.url)

        result: Optional[ExtractionResult] = None
        warning: Optional[str] = None
        succeeded = False

        try:
            for candidate in candidates:
                result = await self.attempt(candidate, output_path, intent.audio_only, intent.quality)
                self._check_aborted(result, _)
                if result.ok:
                    succeeded = True
                    break

                logger.warning(i18n.get("log.attempt_failed", code=result.exit_code, url=safe_url_for_log(candidate)))

                if not intent.audio_only and intent.quality and is_format_unavailable(result.stderr):
                    logger.info(i18n.get("log.quality_fallback", url=safe_url_for_log(candidate)))
                    result = await self.attempt(candidate, output_path, intent.audio_only, None)
                    self._check_aborted(result, _)
                    if result.ok:
                        warning = _("warning.quality_fallback", quality=intent.quality)
                        succeeded = True
                        break

            if not succeeded:
                raise self._failure(result, candidates, _)
        except DownloadError:
            # Partial output and .part fragments are never served
            remove_partial_files(output_path)
            raise

        if not os.path.isfile(output_path):
            logger.error(f"yt-dlp reported success but {output_path} does not exist")
            remove_partial_files(output_path)
            raise DownloadError(500, _("error.file_missing"))

        self.cleanup.schedule(output_path)
        public_path = f"/downloads/{os.path.basename(output_path)}"
        logger.info(i18n.get("log.download_ready", file=public_path))
        return DownloadResult(file=public_path, path=output_path, warning=warning)

    def _failure(
        self,
        result: ExtractionResult,
        candidates: List[str],
        _: Callable[..., str],
    ) -> DownloadError:
        logger.error(f"yt-dlp error code: {result.exit_code}")
        logger.error(f"yt-dlp stderr: {result.stderr}")
        logger.error(f"yt-dlp stdout: {result.stdout}")

        rule = classify_failure(result.stderr)
        if rule is not None:
            logger.warning(f"Download failure classified as {rule.name}")
            return DownloadError(
                rule.status_code,
                _(rule.message_key),
                details=result.stderr,
                code=rule.code,
            )

        return DownloadError(
            500,
            _("error.download_failed"),
            details=result.stderr or result.stdout,
            attempted_urls=candidates,
        )
