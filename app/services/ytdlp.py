import asyncio
import logging
import os
import signal
from typing import List, Optional

from app.config.settings import Config
from app.models.internal import ExtractionResult
from app.services.format import FormatDecision

logger = logging.getLogger(__name__)


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


async def _kill_group(process: asyncio.subprocess.Process) -> None:
    """Kill yt-dlp with everything it spawned (ffmpeg holds the pipes too), then reap it"""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    await process.wait()


class SubprocessExecutor:
    """Execute subprocess with consistent error handling"""

    @staticmethod
    async def run(cmd: List[str], timeout: float) -> ExtractionResult:
        """
        Run subprocess with timeout and proper cleanup.
        Never raises for spawn failures or timeouts; both are reported on the
        result so callers can decide the HTTP status.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                start_new_session=True
            )
        except OSError as e:
            logger.error(f"Failed to spawn {cmd[0]}: {e}")
            return ExtractionResult(spawn_error=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            await _kill_group(process)
            return ExtractionResult(exit_code=process.returncode, timed_out=True)
        except BaseException:
            if process.returncode is None:
                await _kill_group(process)
            raise

        return ExtractionResult(
            exit_code=process.returncode,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
        )


class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    def __init__(self, config: Config):
        self.config = config

    def build_version_command(self) -> List[str]:
        return [self.config.ytdlp.binary, "--version"]

    def build_download_command(
        self,
        url: str,
        output_path: str,
        audio_only: bool,
        quality: Optional[str] = None,
        cookies_file: Optional[str] = None,
    ) -> List[str]:
        """Build command for downloading one candidate URL to output_path"""
        ytdlp = self.config.ytdlp
        cmd = [
            ytdlp.binary,
            "--no-playlist",
            "--socket-timeout", str(self.config.download.socket_timeout),
            "--retries", str(self.config.download.retries),
        ]

        if ytdlp.js_runtime:
            cmd.extend(["--js-runtimes", ytdlp.js_runtime])

        if audio_only:
            cmd.extend(["--extract-audio", "--audio-format", ytdlp.audio_format])
        else:
            cmd.extend([
                "--format", FormatDecision.video_selector(quality),
                "--merge-output-format", ytdlp.merge_output_format,
            ])

        if cookies_file:
            cmd.extend(["--cookies", cookies_file])

        cmd.extend(["-o", output_path, url])
        return cmd
