from decimal import Decimal

from pydantic import Field

from bakery.infrastructure.database.isolation import IsolationLevel
from bakery.settings.base import BakeryBaseSettings


class WorkflowSettings(BakeryBaseSettings):
    """
    Settings for the order creation workflow.
    Loaded automatically from .env with prefix ORDER_CHECK_*
    """

    isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED
    transaction_timeout: float = Field(default=30.0, gt=0)

    # SYP per EUR, applied to every monetary pair
    exchange_rate: Decimal = Field(default=Decimal("1800"), gt=0)
    commission_rate: Decimal = Field(default=Decimal("0.10"), ge=0, le=1)

    cleanup: bool = True

    # 0 keeps the single-attempt behaviour
    lock_timeout_retries: int = Field(default=0, ge=0)
    retry_backoff_seconds: float = Field(default=0.5, ge=0)

    model_config = {"env_prefix": "ORDER_CHECK_"}
