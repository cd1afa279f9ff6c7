import logging
import pandas as pd
from typing import Callable, Dict, Iterable, List, Mapping, Optional
from dataclasses import dataclass, asdict

from configuration.settings import (
    TOOLING_COST_PER_SEAT_MONTHLY,
    CalculatorInputs,
    ImpactStatistic,
    ScenarioConfig,
    ScenarioType,
)
from evidence.observations import ALL_CATEGORIES, Category, Observation, filter_observations, group_by_category
from scenario_modeling.capability_growth import capability_multiplier
from statistical_engine import CategoryStats, StatisticalEngine, round_half_up


_LOGGER = logging.getLogger(__name__)

ImpactSelector = Callable[[CategoryStats], float]

# Statistic monetized by the single-dataset path
PLAIN_SCENARIO_STATISTICS: Dict[ScenarioType, ImpactStatistic] = {
    ScenarioType.PESSIMISTIC: ImpactStatistic.Q1,
    ScenarioType.REALISTIC: ImpactStatistic.MEDIAN,
    ScenarioType.OPTIMISTIC: ImpactStatistic.Q3,
}

# Statistic monetized when each scenario selects its own dataset
CONFIGURED_SCENARIO_STATISTICS: Dict[ScenarioType, ImpactStatistic] = {
    ScenarioType.PESSIMISTIC: ImpactStatistic.Q1,
    ScenarioType.REALISTIC: ImpactStatistic.MEAN,
    ScenarioType.OPTIMISTIC: ImpactStatistic.Q3,
}


@dataclass(frozen=True)
class ROICategoryBreakdown:
    category: Category
    weight: float
    median_impact: float
    hours_saved: float
    cost_savings: float
    included: bool

    def as_dict(self) -> Dict[str, object]:
        record = asdict(self)
        record['category'] = self.category.value
        return record


@dataclass(frozen=True)
class ROIResult:
    total_hours_saved: float
    total_cost_savings: float
    tooling_cost: float
    consulting_cost: float
    training_cost: float
    internal_cost: float
    total_investment: float
    net_roi: float
    roi_ratio: float
    category_breakdown: List[ROICategoryBreakdown]

    def breakdown_for(self, category: Category) -> Optional[ROICategoryBreakdown]:
        for row in self.category_breakdown:
            if row.category == category:
                return row
        return None

    def as_dict(self) -> Dict[str, object]:
        record = {k: v for k, v in asdict(self).items() if k != 'category_breakdown'}
        record['category_breakdown'] = [row.as_dict() for row in self.category_breakdown]
        return record

    def to_frame(self) -> pd.DataFrame:
        """Per-category breakdown as a DataFrame indexed by category name"""
        frame = pd.DataFrame([row.as_dict() for row in self.category_breakdown])
        if frame.empty:
            return frame
        return frame.set_index('category')


@dataclass(frozen=True)
class CategoryObservationGroup:
    category: Category
    observations: List[Observation]
    median_impact: float


@dataclass(frozen=True)
class ConfiguredScenarios:
    scenarios: Dict[ScenarioType, ROIResult]
    observation_mapping: Dict[ScenarioType, List[CategoryObservationGroup]]
    capability_multiplier: float

    def __getitem__(self, scenario: ScenarioType) -> ROIResult:
        return self.scenarios[scenario]


def statistic_selector(statistic: ImpactStatistic, scale: float = 1.0) -> ImpactSelector:
    """Selector reading one CategoryStats field, optionally scaled"""
    def select(stats: CategoryStats) -> float:
        return getattr(stats, statistic.value) * scale
    return select


def compute_scenario(
    inputs: CalculatorInputs,
    category_stats: Mapping[Category, CategoryStats],
    impact_selector: ImpactSelector
) -> ROIResult:
    """Monetize one impact statistic per category into an ROI result.

    Negative impacts are floored to zero savings; the breakdown still shows the
    raw selected impact. Inputs are trusted: weights, ratios and filters are
    validated where the configuration is edited.
    """
    hourly_rate = inputs.hourly_rate
    breakdown: List[ROICategoryBreakdown] = []

    for category in ALL_CATEGORIES:
        stats = category_stats.get(category) or CategoryStats.empty(category)
        raw_impact = impact_selector(stats) / 100
        impact = max(raw_impact, 0.0)
        weight = inputs.category_weights.get(category, 0.0)
        included = category in inputs.included_categories

        if included:
            hours_saved = (
                inputs.team_size * inputs.hours_per_year * weight * impact
                * inputs.inhouse_ratio(category) * inputs.timeframe_years
            )
        else:
            hours_saved = 0.0
        cost_savings = hours_saved * hourly_rate

        breakdown.append(ROICategoryBreakdown(
            category=category,
            weight=weight,
            median_impact=round_half_up(raw_impact * 100, 1),
            hours_saved=round_half_up(hours_saved),
            cost_savings=round_half_up(cost_savings),
            included=included
        ))

    costs = inputs.transformation_costs
    total_hours_saved = sum(row.hours_saved for row in breakdown)
    total_cost_savings = sum(row.cost_savings for row in breakdown)
    # Seats recur over the horizon; transformation costs are one-time
    tooling_cost = inputs.team_size * TOOLING_COST_PER_SEAT_MONTHLY * 12 * inputs.timeframe_years
    total_investment = tooling_cost + costs.consulting + costs.training + costs.internal
    roi_ratio = total_cost_savings / total_investment if total_investment > 0 else 0.0

    return ROIResult(
        total_hours_saved=total_hours_saved,
        total_cost_savings=total_cost_savings,
        tooling_cost=tooling_cost,
        consulting_cost=costs.consulting,
        training_cost=costs.training,
        internal_cost=costs.internal,
        total_investment=total_investment,
        net_roi=total_cost_savings - total_investment,
        roi_ratio=round_half_up(roi_ratio, 1),
        category_breakdown=breakdown
    )


def calculate_scenario_roi(
    inputs: CalculatorInputs,
    category_stats: Mapping[Category, CategoryStats]
) -> Dict[ScenarioType, ROIResult]:
    """Quartile-based scenarios over a single statistics set"""
    return {
        scenario: compute_scenario(inputs, category_stats, statistic_selector(statistic))
        for scenario, statistic in PLAIN_SCENARIO_STATISTICS.items()
    }


def resolve_statistic(
    scenario: ScenarioType,
    config: ScenarioConfig,
    growth_enabled: bool
) -> ImpactStatistic:
    """Statistic a configured scenario monetizes"""
    if config.statistic is not None:
        return config.statistic
    if scenario == ScenarioType.OPTIMISTIC and growth_enabled:
        return ImpactStatistic.MEAN
    return CONFIGURED_SCENARIO_STATISTICS[scenario]


def calculate_configured_scenarios(
    inputs: CalculatorInputs,
    all_observations: Iterable[Observation],
    engine: Optional[StatisticalEngine] = None
) -> ConfiguredScenarios:
    """Run every scenario on its own filtered evidence subset.

    The adoption factor scales every scenario; the capability multiplier only
    the optimistic one, and only when growth is enabled.
    """
    engine = engine or StatisticalEngine()
    all_observations = list(all_observations)
    configs = inputs.scenario_configs
    growth = configs.capability_growth
    multiplier = capability_multiplier(growth)

    scenarios: Dict[ScenarioType, ROIResult] = {}
    mapping: Dict[ScenarioType, List[CategoryObservationGroup]] = {}

    for scenario in ScenarioType:
        config = configs.get(scenario)
        filtered = filter_observations(
            all_observations, years=config.years, data_types=config.data_types
        )
        stats = engine.compute_category_stats(filtered)

        statistic = resolve_statistic(scenario, config, growth.enabled)
        scale = config.adoption_factor
        if scenario == ScenarioType.OPTIMISTIC and growth.enabled:
            scale *= multiplier
        selector = statistic_selector(statistic, scale)

        _LOGGER.debug(
            "Scenario %s: %d of %d observations, statistic=%s, scale=%.4f",
            scenario.value, len(filtered), len(all_observations), statistic.value, scale
        )

        scenarios[scenario] = compute_scenario(inputs, stats, selector)

        groups = group_by_category(filtered)
        mapping[scenario] = [
            CategoryObservationGroup(
                category=category,
                observations=groups[category],
                median_impact=selector(stats[category])
            )
            for category in ALL_CATEGORIES
        ]

    return ConfiguredScenarios(
        scenarios=scenarios,
        observation_mapping=mapping,
        capability_multiplier=multiplier
    )
