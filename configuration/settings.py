"""Calculator and scenario configuration values with their defaults."""
import dataclasses
from typing import Dict, FrozenSet, Optional
from dataclasses import dataclass, field
from enum import Enum

from evidence.observations import ALL_CATEGORIES, ALL_DATA_TYPES, Category, DataType
from scenario_modeling.weight_normalizer import DEFAULT_CATEGORY_WEIGHTS, normalize_weights
from statistical_engine import round_half_up


TOOLING_COST_PER_SEAT_MONTHLY = 20.0  # EUR per seat per month
DEFAULT_IT_BUDGET = 100_000_000.0

# Share of the IT budget assumed for each one-time transformation cost
CONSULTING_BUDGET_SHARE = 0.15
TRAINING_BUDGET_SHARE = 0.05
INTERNAL_BUDGET_SHARE = 0.10


class ConfigurationError(ValueError):
    """Raised when calculator or scenario configuration violates a precondition"""


class ScenarioType(Enum):
    PESSIMISTIC = "pessimistic"
    REALISTIC = "realistic"
    OPTIMISTIC = "optimistic"


class ImpactStatistic(Enum):
    MIN = "min"
    Q1 = "q1"
    MEDIAN = "median"
    Q3 = "q3"
    MAX = "max"
    MEAN = "mean"


@dataclass(frozen=True)
class ScenarioConfig:
    years: FrozenSet[int]
    data_types: FrozenSet[DataType]
    adoption_factor: float = 1.0
    statistic: Optional[ImpactStatistic] = None

    def with_year_toggled(self, year: int) -> "ScenarioConfig":
        """Add or remove a year, refusing to leave the filter empty"""
        if year in self.years:
            if len(self.years) == 1:
                raise ConfigurationError(f"Cannot remove {year}: scenario needs at least one year")
            return dataclasses.replace(self, years=self.years - {year})
        return dataclasses.replace(self, years=self.years | {year})

    def with_data_type_toggled(self, data_type: DataType) -> "ScenarioConfig":
        """Add or remove a data type, refusing to leave the filter empty"""
        if data_type in self.data_types:
            if len(self.data_types) == 1:
                raise ConfigurationError(
                    f"Cannot remove {data_type.value}: scenario needs at least one data type"
                )
            return dataclasses.replace(self, data_types=self.data_types - {data_type})
        return dataclasses.replace(self, data_types=self.data_types | {data_type})


@dataclass(frozen=True)
class CapabilityGrowthConfig:
    enabled: bool = True
    doubling_period_months: float = 4.0
    horizon_months: float = 12.0
    elasticity: float = 0.5


@dataclass(frozen=True)
class ScenarioConfigs:
    pessimistic: ScenarioConfig
    realistic: ScenarioConfig
    optimistic: ScenarioConfig
    capability_growth: CapabilityGrowthConfig = field(default_factory=CapabilityGrowthConfig)

    def get(self, scenario: ScenarioType) -> ScenarioConfig:
        return getattr(self, scenario.value)

    def replace(self, scenario: ScenarioType, config: ScenarioConfig) -> "ScenarioConfigs":
        return dataclasses.replace(self, **{scenario.value: config})


@dataclass(frozen=True)
class TransformationCosts:
    consulting: float = 0.0
    training: float = 0.0
    internal: float = 0.0

    @property
    def total(self) -> float:
        return self.consulting + self.training + self.internal


def default_scenario_configs() -> ScenarioConfigs:
    all_types = frozenset(ALL_DATA_TYPES)
    return ScenarioConfigs(
        pessimistic=ScenarioConfig(
            years=frozenset({2023, 2024}),
            data_types=frozenset({DataType.EMPIRICAL}),
            adoption_factor=0.75
        ),
        realistic=ScenarioConfig(years=frozenset({2024, 2025, 2026}), data_types=all_types),
        optimistic=ScenarioConfig(years=frozenset({2025, 2026}), data_types=all_types),
        capability_growth=CapabilityGrowthConfig()
    )


def default_transformation_costs(it_budget: float) -> TransformationCosts:
    return TransformationCosts(
        consulting=round_half_up(it_budget * CONSULTING_BUDGET_SHARE),
        training=round_half_up(it_budget * TRAINING_BUDGET_SHARE),
        internal=round_half_up(it_budget * INTERNAL_BUDGET_SHARE)
    )


def team_size_for_budget(it_budget: float, avg_salary: float) -> int:
    """Head count an IT budget pays for at the given salary, at least one"""
    if avg_salary <= 0:
        return 1
    return max(1, int(round_half_up(it_budget / avg_salary)))


@dataclass(frozen=True)
class CalculatorInputs:
    team_size: int = 25
    avg_salary: float = 55_000.0
    hours_per_year: float = 1_600.0
    included_categories: FrozenSet[Category] = frozenset(ALL_CATEGORIES)
    category_weights: Dict[Category, float] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS)
    )
    inhouse_ratios: Dict[Category, float] = field(
        default_factory=lambda: {category: 1.0 for category in ALL_CATEGORIES}
    )
    transformation_costs: TransformationCosts = field(
        default_factory=lambda: default_transformation_costs(DEFAULT_IT_BUDGET)
    )
    timeframe_years: float = 1.0
    scenario_configs: ScenarioConfigs = field(default_factory=default_scenario_configs)
    it_budget: Optional[float] = DEFAULT_IT_BUDGET

    def __post_init__(self):
        # excluded categories carry no weight; included ones sum to 1.0 unless all zero
        object.__setattr__(
            self, 'category_weights', normalize_weights(self.category_weights, self.included_categories)
        )

    @property
    def hourly_rate(self) -> float:
        return self.avg_salary / self.hours_per_year if self.hours_per_year > 0 else 0.0

    def inhouse_ratio(self, category: Category) -> float:
        return self.inhouse_ratios.get(category, 1.0)


def default_calculator_inputs() -> CalculatorInputs:
    return CalculatorInputs()
