import logging
import pandas as pd
from typing import Dict, List, Optional, Iterable, Sequence, Collection

from configuration.settings import CalculatorInputs, ScenarioType
from evidence.observations import Category, DataType, Observation, filter_observations
from scenario_modeling.scenario_engine import (
    ConfiguredScenarios,
    ROIResult,
    calculate_configured_scenarios,
    calculate_scenario_roi,
)
from scenario_modeling.weight_normalizer import default_weights_from_data
from statistical_engine import (
    CategoryStats,
    CorpusProfile,
    EraComparison,
    StatisticalEngine,
    TrendPoint,
)


_LOGGER = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Basic stderr logging for scripts; the library itself never adds handlers"""
    logging.basicConfig(level=level, format='%(asctime)s %(name)s %(levelname)s %(message)s')


class ROIFramework:
    """Evidence statistics and scenario ROI projections over a fixed observation corpus"""

    def __init__(self, observations: Iterable[Observation], statistical_engine: Optional[StatisticalEngine] = None):
        self.observations = tuple(observations)
        self.statistical_engine = statistical_engine or StatisticalEngine()
        _LOGGER.debug("ROI framework loaded with %d observations", len(self.observations))

    def filter_observations(
        self,
        years: Optional[Collection[int]] = None,
        data_types: Optional[Collection[DataType]] = None,
        categories: Optional[Collection[Category]] = None
    ) -> List[Observation]:
        return filter_observations(self.observations, years, data_types, categories)

    def category_statistics(
        self,
        years: Optional[Collection[int]] = None,
        data_types: Optional[Collection[DataType]] = None,
        categories: Optional[Sequence[Category]] = None
    ) -> Dict[Category, CategoryStats]:
        """Quartile statistics for the observations matching the filters"""
        subset = self.filter_observations(years, data_types, categories)
        return self.statistical_engine.compute_category_stats(subset, categories)

    def trends(
        self,
        years: Optional[Collection[int]] = None,
        data_types: Optional[Collection[DataType]] = None,
        categories: Optional[Sequence[Category]] = None
    ) -> Dict[Category, List[TrendPoint]]:
        subset = self.filter_observations(data_types=data_types, categories=categories)
        return self.statistical_engine.compute_trends(subset, categories, years)

    def era_comparison(self) -> List[EraComparison]:
        """Early vs agentic era means, always over the full corpus"""
        return self.statistical_engine.compute_era_comparison(self.observations)

    def corpus_profile(
        self,
        years: Optional[Collection[int]] = None,
        data_types: Optional[Collection[DataType]] = None
    ) -> CorpusProfile:
        return self.statistical_engine.profile_corpus(self.filter_observations(years, data_types))

    def default_weights(self) -> Dict[Category, float]:
        return default_weights_from_data(self.observations)

    def calculate_scenarios(self, inputs: CalculatorInputs) -> ConfiguredScenarios:
        """Pessimistic, realistic and optimistic ROI, each on its own evidence subset"""
        return calculate_configured_scenarios(inputs, self.observations, self.statistical_engine)

    def calculate_scenario(self, inputs: CalculatorInputs, scenario: str) -> ROIResult:
        try:
            scenario_type = ScenarioType(scenario)
        except ValueError:
            raise ValueError(f"Unknown scenario: {scenario}") from None
        return self.calculate_scenarios(inputs)[scenario_type]

    def calculate_quartile_scenarios(
        self,
        inputs: CalculatorInputs,
        years: Optional[Collection[int]] = None,
        data_types: Optional[Collection[DataType]] = None
    ) -> Dict[ScenarioType, ROIResult]:
        """Q1/median/Q3 scenarios over one shared filtered dataset"""
        return calculate_scenario_roi(inputs, self.category_statistics(years, data_types))

    def scenario_summary(self, inputs: CalculatorInputs) -> pd.DataFrame:
        """Headline figures per scenario, one row each"""
        outcome = self.calculate_scenarios(inputs)
        rows = []
        for scenario, result in outcome.scenarios.items():
            rows.append({
                'scenario': scenario.value,
                'total_hours_saved': result.total_hours_saved,
                'total_cost_savings': result.total_cost_savings,
                'total_investment': result.total_investment,
                'net_roi': result.net_roi,
                'roi_ratio': result.roi_ratio,
                'observations': sum(len(g.observations) for g in outcome.observation_mapping[scenario]),
            })
        summary = pd.DataFrame(rows).set_index('scenario')
        summary.attrs['capability_multiplier'] = outcome.capability_multiplier
        return summary
