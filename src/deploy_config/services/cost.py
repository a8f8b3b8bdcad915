"""Price of a service size.

Each size further down the catalog list gets a cheaper unit price:
    coeff = 1 - index / 13
    month = round(memory / (baseValue / (baseCost * 100 * coeff)))
    hour = month / 720
    minute = hour / 60
month is rounded half away from zero (12.5 → 13, -7.5 → -8).
Sizes past index 13 get a negative coeff and so a negative price; that is
accepted as-is. A zero unit price (index 13, or baseCost 0) costs nothing.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from deploy_config.constants import HOURS_IN_MONTH, PRICE_SHIFT_DIVISOR
from deploy_config.models.deploy_data import DeployData
from deploy_config.utils.logging import get_logger

logger = get_logger(__name__)


class ServiceCost(NamedTuple):
    month: int
    hour: float
    minute: float


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_cost_service(size_name: str, deploy_data: DeployData) -> ServiceCost | None:
    """Monthly, hourly and per-minute price of size_name, or None if unknown."""
    index = deploy_data.size_index(size_name)
    if index is None:
        logger.error("service_cost_unknown_size", size=size_name)
        return None

    size = deploy_data.sizes[index]
    coeff = 1 - index / PRICE_SHIFT_DIVISOR

    unit_price = deploy_data.base_cost * 100 * coeff
    if unit_price == 0:
        return ServiceCost(month=0, hour=0.0, minute=0.0)

    month = _round_half_up(size.memory.value / (deploy_data.base_value / unit_price))
    hour = month / HOURS_IN_MONTH
    minute = hour / 60
    return ServiceCost(month=month, hour=hour, minute=minute)
