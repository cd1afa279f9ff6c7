import itertools

import pytest

from configuration.settings import (
    CalculatorInputs,
    CapabilityGrowthConfig,
    ScenarioConfig,
    ScenarioConfigs,
    TransformationCosts,
)
from evidence.observations import ALL_DATA_TYPES, Category, DataType, Observation
from scenario_modeling.weight_normalizer import normalize_weights


@pytest.fixture
def observation_factory():
    counter = itertools.count(1)

    def make(**kwargs):
        index = next(counter)
        defaults = dict(
            observation_id=f"OBS{index}",
            category=Category.DEV,
            impact_pct=10.0,
            year=2025,
            source_id=f"source-{index}",
            data_type=DataType.EMPIRICAL,
            description="Reported cycle-time change",
            credibility=2,
        )
        defaults.update(kwargs)
        return Observation(**defaults)

    return make


@pytest.fixture
def dev_only_inputs():
    """Ten developers, all weight on Dev, no transformation costs"""
    included = frozenset({Category.DEV})
    all_types = frozenset(ALL_DATA_TYPES)
    return CalculatorInputs(
        team_size=10,
        avg_salary=60000.0,
        hours_per_year=1600.0,
        included_categories=included,
        category_weights=normalize_weights({Category.DEV: 1.0}, included),
        inhouse_ratios={Category.DEV: 1.0},
        transformation_costs=TransformationCosts(),
        timeframe_years=1.0,
        scenario_configs=ScenarioConfigs(
            pessimistic=ScenarioConfig(years=frozenset({2025}), data_types=all_types),
            realistic=ScenarioConfig(years=frozenset({2025}), data_types=all_types),
            optimistic=ScenarioConfig(years=frozenset({2025}), data_types=all_types),
            capability_growth=CapabilityGrowthConfig(enabled=False)
        ),
        it_budget=None
    )
