# Settings package
from bakery.settings.app import AppSettings, get_app_settings
from bakery.settings.base import ConfigurationError
from bakery.settings.database import DatabaseSettings
from bakery.settings.workflow import WorkflowSettings

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "DatabaseSettings",
    "WorkflowSettings",
    "get_app_settings",
]
