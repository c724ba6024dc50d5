from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from bakery.settings.database import DatabaseSettings
from bakery.settings.workflow import WorkflowSettings


class AppSettings(BaseModel):
    """
    Application settings aggregator.

    Built once at process start and passed down explicitly; nothing
    below the entry point reads the environment.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    database: DatabaseSettings
    workflow: WorkflowSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        database=DatabaseSettings(),
        workflow=WorkflowSettings(),
    )
