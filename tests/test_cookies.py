import base64
import os

import pytest

from app.services.cookies import decode_cookies, materialize_cookies, resolve_cookies_file

COOKIES = "# Netscape HTTP Cookie File\n.youtube.com\tTRUE\t/\tTRUE\t0\tSID\tsecret\n"


def write(path, text="# Netscape HTTP Cookie File\n"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(text)


def test_no_cookie_source(config):
    assert resolve_cookies_file(config, None) is None


def test_bundled_file_used_when_present(config):
    write(config.ytdlp.cookies_file)
    assert resolve_cookies_file(config, None) == config.ytdlp.cookies_file


def test_runtime_file_takes_precedence(config):
    write(config.ytdlp.cookies_file)
    write(config.ytdlp.runtime_cookies_file)
    assert resolve_cookies_file(config, config.ytdlp.runtime_cookies_file) == config.ytdlp.runtime_cookies_file


def test_runtime_file_ignored_once_deleted(config):
    write(config.ytdlp.cookies_file)
    assert resolve_cookies_file(config, config.ytdlp.runtime_cookies_file) == config.ytdlp.cookies_file


def test_base64_wins_over_raw_text(config):
    config.cookies_text = "raw"
    config.cookies_base64 = base64.b64encode(COOKIES.encode()).decode()
    assert decode_cookies(config) == COOKIES


def test_raw_text_unescapes_newlines(config):
    config.cookies_text = "# Netscape HTTP Cookie File\\n.example.com\\tTRUE"
    assert decode_cookies(config) == "# Netscape HTTP Cookie File\n.example.com\tTRUE"


def test_invalid_base64_is_ignored(config):
    config.cookies_base64 = "%%%not-base64%%%"
    assert decode_cookies(config) is None


@pytest.mark.asyncio
async def test_materialize_writes_runtime_file(config):
    config.cookies_base64 = base64.b64encode(COOKIES.encode()).decode()
    path = await materialize_cookies(config)

    assert path == config.ytdlp.runtime_cookies_file
    with open(path) as f:
        assert f.read() == COOKIES
    assert oct(os.stat(path).st_mode & 0o777) == oct(0o600)


@pytest.mark.asyncio
async def test_materialize_without_env_cookies(config):
    assert await materialize_cookies(config) is None
    assert not os.path.exists(config.ytdlp.runtime_cookies_file)
