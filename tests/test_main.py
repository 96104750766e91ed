import pytest

from conftest import client_for


@pytest.mark.asyncio
async def test_root(make_app):
    """Test service banner"""
    app, _ = make_app()
    async with client_for(app) as ac:
        response = await ac.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "video-downloader-api"}

@pytest.mark.asyncio
async def test_health_check(make_app):
    """Test public health endpoint"""
    app, _ = make_app()
    async with client_for(app) as ac:
        response = await ac.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

@pytest.mark.asyncio
async def test_health_check_full_without_redis(make_app):
    app, _ = make_app()
    async with client_for(app) as ac:
        response = await ac.get("/health/full")
    body = response.json()
    assert response.status_code == 200
    assert body["redis"] == "disabled"
    assert body["active_downloads"] == 0
    assert body["max_concurrent"] == 4
    assert body["cookies"] is False

@pytest.mark.asyncio
async def test_request_id_header(make_app):
    app, _ = make_app()
    async with client_for(app) as ac:
        response = await ac.get("/health")
    assert response.headers["X-Request-ID"]

@pytest.mark.asyncio
async def test_cors_allows_any_origin_by_default(make_app):
    app, _ = make_app()
    async with client_for(app) as ac:
        response = await ac.get("/health", headers={"Origin": "https://example.org"})
    assert response.headers["access-control-allow-origin"] == "*"

@pytest.mark.asyncio
async def test_cors_allow_list(config, make_app):
    config.api.cors_origins = ["https://app.example.com"]
    app, _ = make_app()
    async with client_for(app) as ac:
        allowed = await ac.get("/health", headers={"Origin": "https://app.example.com"})
        denied = await ac.get("/health", headers={"Origin": "https://evil.example.com"})
    assert allowed.headers["access-control-allow-origin"] == "https://app.example.com"
    assert "access-control-allow-origin" not in denied.headers
