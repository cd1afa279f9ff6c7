"""Exponential capability-growth model used to bias the optimistic scenario.

The raw curve assumes capability doubles every ``doubling_period_months``.
The elasticity exponent turns that exogenous technology curve into an
organisational uptake multiplier: below 1 dampens, 1 reproduces the raw
curve, above 1 amplifies it.
"""
from configuration.settings import CapabilityGrowthConfig


def raw_capability_growth(config: CapabilityGrowthConfig) -> float:
    """Undampened growth factor over the configured horizon"""
    if config.doubling_period_months <= 0:
        return 1.0
    return 2.0 ** (config.horizon_months / config.doubling_period_months)


def capability_multiplier(config: CapabilityGrowthConfig) -> float:
    """Adoption-dampened multiplier; exactly 1.0 when growth is disabled"""
    if not config.enabled or config.doubling_period_months <= 0:
        return 1.0
    return raw_capability_growth(config) ** config.elasticity
