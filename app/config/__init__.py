from .settings import Config, EnvSettings, load_config

__all__ = ["Config", "EnvSettings", "load_config"]
