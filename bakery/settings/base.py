# bakery/settings/base.py
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing or inconsistent."""


class BakeryBaseSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
