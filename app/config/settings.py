import json
import logging
import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOADS_DIR = "downloads"
RENDER_DOWNLOADS_DIR = "/tmp/downloads"


class RedisConfig(BaseModel):
    url: Optional[str] = Field(default=None, description="Redis connection URL (disabled when unset)")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class DownloadConfig(BaseModel):
    downloads_dir: str = Field(default=DEFAULT_DOWNLOADS_DIR, description="Directory produced files are written to")
    max_concurrent: int = Field(default=4, ge=1, le=100, description="Max concurrent downloads")
    timeout_seconds: float = Field(default=900, gt=0, description="Wall-clock timeout for one yt-dlp run")
    ttl_seconds: float = Field(default=3600, description="Delete produced files after this many seconds (<=0 disables)")
    socket_timeout: int = Field(default=10, ge=1, description="Socket timeout for yt-dlp")
    retries: int = Field(default=3, ge=0, description="Network retries inside yt-dlp")


class YtDlpConfig(BaseModel):
    binary: str = Field(default="yt-dlp", description="yt-dlp executable")
    js_runtime: Optional[str] = Field(default=None, description="JS runtime passed via --js-runtimes")
    audio_format: str = Field(default="mp3", description="Target codec for audio extraction")
    merge_output_format: str = Field(default="mp4", description="Container for merged video downloads")
    cookies_file: str = Field(default="cookies.txt", description="Bundled Netscape cookie file")
    runtime_cookies_file: str = Field(
        default=os.path.join("/tmp", "video-downloader-api", "cookies.txt"),
        description="Where cookies from the environment are materialized at startup",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: list = Field(default=["en", "ja"], description="Supported locales")


class ApiConfig(BaseModel):
    title: str = Field(default="video-downloader-api", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=5000, ge=1, le=65535, description="Bind port")
    cors_origins: List[str] = Field(default_factory=list, description="CORS allow-list (empty allows all)")
    debug: bool = Field(default=False, description="Enable debug mode")


class Config(BaseModel):
    """Main configuration model"""
    redis: RedisConfig = Field(default_factory=RedisConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    ytdlp: YtDlpConfig = Field(default_factory=YtDlpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    # Cookie bootstrap values; never written back to disk with the config
    cookies_text: Optional[str] = Field(default=None, exclude=True, repr=False)
    cookies_base64: Optional[str] = Field(default=None, exclude=True, repr=False)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file"""
        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
                logger.info(f"Configuration loaded from {config_path}")
                return cls(**config_data)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {config_path}: {str(e)}")
                logger.info("Using default configuration")
        else:
            logger.warning(f"Config file {config_path} not found, using defaults")

        return cls()

    @classmethod
    def load_from_env(cls, env: Optional["EnvSettings"] = None) -> "Config":
        """Load configuration from environment variables"""
        env = env or EnvSettings()
        config_data = {}

        if env.redis_url:
            config_data["redis"] = {"url": env.redis_url}

        download = {}
        if env.downloads_dir:
            download["downloads_dir"] = os.path.abspath(env.downloads_dir)
        elif env.render:
            download["downloads_dir"] = RENDER_DOWNLOADS_DIR
        if env.download_timeout_ms is not None:
            download["timeout_seconds"] = env.download_timeout_ms / 1000
        if env.download_ttl_ms is not None:
            download["ttl_seconds"] = env.download_ttl_ms / 1000
        if env.max_concurrent_downloads is not None:
            download["max_concurrent"] = env.max_concurrent_downloads
        if download:
            config_data["download"] = download

        ytdlp = {}
        if env.yt_dlp_binary:
            ytdlp["binary"] = env.yt_dlp_binary
        if env.yt_dlp_js_runtime:
            ytdlp["js_runtime"] = env.yt_dlp_js_runtime
        if env.ytdlp_cookies_file:
            ytdlp["cookies_file"] = env.ytdlp_cookies_file
        if ytdlp:
            config_data["ytdlp"] = ytdlp

        if env.log_level:
            config_data["logging"] = {"level": env.log_level}

        if env.default_locale:
            config_data["i18n"] = {"default_locale": env.default_locale}

        api = {}
        if env.port is not None:
            api["port"] = env.port
        if env.host:
            api["host"] = env.host
        if env.cors_origins:
            api["cors_origins"] = [o.strip() for o in env.cors_origins.split(",") if o.strip()]
        if api:
            config_data["api"] = api

        config_data["cookies_text"] = env.ytdlp_cookies
        config_data["cookies_base64"] = env.ytdlp_cookies_base64

        return cls(**config_data)


class EnvSettings(BaseSettings):
    """Flat view of the environment variables the service understands"""
    model_config = SettingsConfigDict(case_sensitive=False, env_ignore_empty=True, extra="ignore")

    port: Optional[int] = None
    host: Optional[str] = None
    download_timeout_ms: Optional[float] = None
    download_ttl_ms: Optional[float] = None
    downloads_dir: Optional[str] = None
    render: Optional[str] = None
    max_concurrent_downloads: Optional[int] = None
    cors_origins: Optional[str] = None
    ytdlp_cookies: Optional[str] = None
    ytdlp_cookies_base64: Optional[str] = None
    ytdlp_cookies_file: Optional[str] = None
    yt_dlp_binary: Optional[str] = None
    yt_dlp_js_runtime: Optional[str] = None
    redis_url: Optional[str] = None
    log_level: Optional[str] = None
    default_locale: Optional[str] = None


def load_config() -> Config:
    """Load configuration with priority: config.json > env vars > defaults"""
    config_path = os.getenv("CONFIG_PATH", "config.json")

    if os.path.exists(config_path):
        config = Config.load_from_file(config_path)
        # Secrets only ever come from the environment
        env = EnvSettings()
        config.cookies_text = env.ytdlp_cookies
        config.cookies_base64 = env.ytdlp_cookies_base64
        return config

    logger.info(f"Config file not found at {config_path}, checking environment variables")
    return Config.load_from_env()
