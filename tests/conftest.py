import os
import tempfile

# app.main builds a module-level app on import; keep it away from the working tree
os.environ.setdefault("DOWNLOADS_DIR", tempfile.mkdtemp(prefix="video-downloader-test-"))
os.environ.setdefault("CONFIG_PATH", os.path.join(tempfile.gettempdir(), "video-downloader-test-absent.json"))

import httpx
import pytest

from app.config.settings import Config, DownloadConfig, LoggingConfig, YtDlpConfig
from app.main import create_app
from app.models.internal import ExtractionResult


def output_path_of(cmd):
    return cmd[cmd.index("-o") + 1]


def succeed(cmd):
    """Behave like a successful yt-dlp run: create the output file"""
    with open(output_path_of(cmd), "wb") as f:
        f.write(b"media")
    return ExtractionResult(exit_code=0, stdout="[download] 100%\n")


def fail(stderr, exit_code=1, stdout=""):
    return lambda cmd: ExtractionResult(exit_code=exit_code, stderr=stderr, stdout=stdout)


class FakeRunner:
    """Stands in for SubprocessExecutor.run; replays one behaviour per call"""

    def __init__(self, *behaviours):
        self.behaviours = list(behaviours)
        self.calls = []

    async def __call__(self, cmd, timeout):
        self.calls.append(list(cmd))
        if not self.behaviours:
            raise AssertionError(f"unexpected yt-dlp call: {cmd}")
        return self.behaviours.pop(0)(cmd)

    def urls(self):
        return [cmd[-1] for cmd in self.calls]


@pytest.fixture
def config(tmp_path):
    return Config(
        download=DownloadConfig(downloads_dir=str(tmp_path / "downloads"), ttl_seconds=3600),
        ytdlp=YtDlpConfig(
            cookies_file=str(tmp_path / "bundled" / "cookies.txt"),
            runtime_cookies_file=str(tmp_path / "runtime" / "cookies.txt"),
        ),
        logging=LoggingConfig(enable_rich=False),
    )


@pytest.fixture
def make_app(config):
    def _make(*behaviours):
        runner = FakeRunner(*behaviours)
        app = create_app(config)
        app.state.download_service.runner = runner
        return app, runner
    return _make


def client_for(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
