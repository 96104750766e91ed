import asyncio
import sys
import time

import pytest

from app.config.settings import Config, DownloadConfig, YtDlpConfig
from app.services.format import FormatDecision
from app.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder


@pytest.fixture
def builder():
    return YTDLPCommandBuilder(Config(download=DownloadConfig(socket_timeout=7, retries=2)))


def test_audio_command(builder):
    cmd = builder.build_download_command("https://youtu.be/x", "/d/video_1.mp3", audio_only=True)
    assert cmd == [
        "yt-dlp",
        "--no-playlist",
        "--socket-timeout", "7",
        "--retries", "2",
        "--extract-audio", "--audio-format", "mp3",
        "-o", "/d/video_1.mp3",
        "https://youtu.be/x",
    ]


def test_video_command_with_quality_and_cookies(builder):
    cmd = builder.build_download_command(
        "https://youtu.be/x",
        "/d/video_1.mp4",
        audio_only=False,
        quality="720p",
        cookies_file="/etc/app/cookies.txt",
    )
    assert cmd[cmd.index("--format") + 1] == "bestvideo[height<=720]+bestaudio/best[height<=720]"
    assert cmd[cmd.index("--merge-output-format") + 1] == "mp4"
    assert cmd[cmd.index("--cookies") + 1] == "/etc/app/cookies.txt"
    assert cmd[-3:] == ["-o", "/d/video_1.mp4", "https://youtu.be/x"]
    assert "--extract-audio" not in cmd


def test_url_is_a_single_argument(builder):
    hostile = "https://example.com/v?a=1;rm -rf /&b=$(id)"
    cmd = builder.build_download_command(hostile, "/d/out.mp4", audio_only=False)
    assert cmd[-1] == hostile


def test_js_runtime_is_forwarded():
    builder = YTDLPCommandBuilder(Config(ytdlp=YtDlpConfig(js_runtime="deno:/usr/bin/deno", binary="/opt/yt-dlp")))
    cmd = builder.build_download_command("https://youtu.be/x", "/d/o.mp4", audio_only=False)
    assert cmd[0] == "/opt/yt-dlp"
    assert cmd[cmd.index("--js-runtimes") + 1] == "deno:/usr/bin/deno"
    assert "--cookies" not in cmd


@pytest.mark.parametrize(
    "quality, selector",
    [
        (None, "bestvideo+bestaudio/best"),
        ("480p", "bestvideo[height<=480]+bestaudio/best[height<=480]"),
        ("720p", "bestvideo[height<=720]+bestaudio/best[height<=720]"),
        ("1080p", "bestvideo[height<=1080]+bestaudio/best[height<=1080]"),
        ("max1080p", "bestvideo[height<=1080]+bestaudio/best[height<=1080]"),
    ],
)
def test_video_selector(quality, selector):
    assert FormatDecision.video_selector(quality) == selector


@pytest.mark.asyncio
async def test_executor_captures_output_and_exit_code():
    result = await SubprocessExecutor.run(
        [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"],
        timeout=10,
    )
    assert result.exit_code == 3
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert not result.timed_out
    assert not result.ok


@pytest.mark.asyncio
async def test_executor_success():
    result = await SubprocessExecutor.run([sys.executable, "-c", "pass"], timeout=10)
    assert result.ok


@pytest.mark.asyncio
async def test_executor_kills_on_timeout():
    started = time.monotonic()
    result = await SubprocessExecutor.run(
        [sys.executable, "-c", "import time; time.sleep(30)"],
        timeout=0.5,
    )
    assert result.timed_out
    assert not result.ok
    # Killed process has been reaped
    assert result.exit_code is not None
    assert time.monotonic() - started < 10


def process_alive(pid):
    """True while pid exists and is not a zombie waiting to be reaped"""
    try:
        with open(f"/proc/{pid}/stat") as f:
            state = f.read().rsplit(")", 1)[1].split()[0]
    except (FileNotFoundError, IndexError):
        return False
    return state not in ("Z", "X")


@pytest.mark.asyncio
@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inspects /proc")
async def test_executor_timeout_kills_children_holding_pipes(tmp_path):
    """A tool whose helper (ffmpeg for HLS) inherits stdout must not delay the timeout"""
    pidfile = tmp_path / "child.pid"
    tool = tmp_path / "fake-yt-dlp"
    tool.write_text(f"#!/bin/sh\nsleep 30 &\necho $! > {pidfile}\nexec sleep 30\n")
    tool.chmod(0o755)

    started = time.monotonic()
    result = await SubprocessExecutor.run([str(tool)], timeout=0.5)
    elapsed = time.monotonic() - started

    assert result.timed_out
    assert elapsed < 2.0

    child = int(pidfile.read_text().strip())
    deadline = time.monotonic() + 2
    while process_alive(child) and time.monotonic() < deadline:
        await asyncio.sleep(0.05)
    assert not process_alive(child)


@pytest.mark.asyncio
async def test_executor_reports_spawn_failure():
    result = await SubprocessExecutor.run(["/nonexistent/yt-dlp-binary", "--version"], timeout=5)
    assert result.spawn_error
    assert result.exit_code is None
    assert not result.ok
