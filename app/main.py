import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from rich.console import Console

from app.api import download, files, health
from app.config.settings import Config, load_config
from app.core.errors import register_exception_handlers
from app.core.logging import new_request_id, setup_logging
from app.core.state import RuntimeState
from app.infra.redis import close_redis, init_redis
from app.services.cleanup import CleanupScheduler, cleanup_old_files
from app.services.cookies import materialize_cookies
from app.services.download import DownloadService
from app.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder

logger = logging.getLogger(__name__)
console = Console()

VERSION_PROBE_TIMEOUT = 15.0


def create_app(config: Optional[Config] = None) -> FastAPI:
    config = config or load_config()
    setup_logging(config.logging)

    # Static mount needs the directory to exist at construction time
    config.download.downloads_dir = os.path.abspath(config.download.downloads_dir)
    os.makedirs(config.download.downloads_dir, exist_ok=True)

    app = FastAPI(
        title=config.api.title,
        version=config.api.version,
        docs_url="/docs" if config.api.debug else None,
        redoc_url=None
    )

    app.state.config = config
    app.state.runtime = RuntimeState()
    app.state.cleanup = CleanupScheduler(config.download.ttl_seconds)
    app.state.download_service = DownloadService(config, app.state.cleanup)

    # CORS: an explicit allow-list restricts origins and methods, otherwise allow all
    if config.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request.state.request_id = new_request_id()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    register_exception_handlers(app)

    # Routes
    app.include_router(health.router, tags=["Health"])
    app.include_router(download.router, tags=["Download"])
    app.include_router(files.router, tags=["Files"])
    app.mount("/downloads", StaticFiles(directory=config.download.downloads_dir), name="downloads")

    @app.on_event("startup")
    async def startup_event():
        runtime = app.state.runtime

        removed = cleanup_old_files(config.download.downloads_dir, config.download.ttl_seconds)
        if removed:
            console.print(f"[dim]Removed {removed} expired file(s) from {config.download.downloads_dir}[/dim]")

        runtime.runtime_cookies_file = await materialize_cookies(config)
        app.state.download_service.runtime_cookies_file = runtime.runtime_cookies_file
        if runtime.runtime_cookies_file:
            console.print("[green]✓ Cookies loaded from environment[/green]")

        version = await SubprocessExecutor.run(
            YTDLPCommandBuilder(config).build_version_command(),
            timeout=VERSION_PROBE_TIMEOUT,
        )
        if version.ok:
            runtime.ytdlp_version = version.stdout.strip()
            console.print(f"[green]✓ yt-dlp {runtime.ytdlp_version}[/green]")
        else:
            console.print(f"[yellow]⚠ {config.ytdlp.binary} is not runnable; downloads will fail[/yellow]")

        runtime.redis = await init_redis(config.redis)

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.cleanup.cancel_all()
        await close_redis(app.state.runtime.redis)
        app.state.runtime.redis = None

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=app.state.config.api.host, port=app.state.config.api.port)
