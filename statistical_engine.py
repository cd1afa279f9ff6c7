import math
import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Tuple, Optional, Iterable, Sequence, Collection
from dataclasses import dataclass, field, asdict

from evidence.observations import (
    ALL_CATEGORIES,
    ALL_DATA_TYPES,
    Category,
    Observation,
    group_by_category,
    observations_to_frame,
)


_LOGGER = logging.getLogger(__name__)

ERA_BOUNDARY_YEAR = 2024  # <= boundary is "early", > boundary is "agentic"


@dataclass(frozen=True)
class CategoryStats:
    category: Category
    min: float = 0.0
    q1: float = 0.0
    median: float = 0.0
    q3: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    count: int = 0
    source_count: int = 0

    @classmethod
    def empty(cls, category: Category) -> "CategoryStats":
        return cls(category=category)

    def as_dict(self) -> Dict[str, object]:
        record = asdict(self)
        record['category'] = self.category.value
        return record


@dataclass(frozen=True)
class TrendPoint:
    year: int
    mean: float
    count: int


@dataclass(frozen=True)
class EraComparison:
    category: Category
    early_mean: float
    agentic_mean: float
    delta: float


@dataclass
class CorpusProfile:
    total_observations: int
    unique_sources: int
    year_span: Optional[Tuple[int, int]]
    available_years: List[int]
    counts_by_year: Dict[int, int]
    counts_by_credibility: Dict[int, int]
    counts_by_data_type: Dict[str, int]
    counts_by_category: Dict[str, int]
    credibility_by_category: Dict[str, Dict[str, int]] = field(default_factory=dict)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with exact halves going toward +inf, as the published figures do"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def quartile(sorted_values: Sequence[float], q: float) -> float:
    """Linear interpolation between order statistics of an ascending sample"""
    if len(sorted_values) == 0:
        return 0.0
    return float(np.quantile(sorted_values, q))


class StatisticalEngine:
    """Distributional statistics over impact observations"""

    def __init__(self, era_boundary_year: int = ERA_BOUNDARY_YEAR, trend_precision: int = 1):
        self.era_boundary_year = era_boundary_year
        self.trend_precision = trend_precision

    def compute_category_stats(
        self,
        observations: Iterable[Observation],
        categories: Optional[Sequence[Category]] = None
    ) -> Dict[Category, CategoryStats]:
        """Five-number summary, mean and counts per category"""
        groups = group_by_category(observations, categories)
        results: Dict[Category, CategoryStats] = {}

        for category, members in groups.items():
            if not members:
                results[category] = CategoryStats.empty(category)
                continue

            values = np.sort(np.array([m.impact_pct for m in members], dtype=float))
            results[category] = CategoryStats(
                category=category,
                min=float(values[0]),
                q1=quartile(values, 0.25),
                median=quartile(values, 0.5),
                q3=quartile(values, 0.75),
                max=float(values[-1]),
                mean=float(np.mean(values)),
                count=len(values),
                source_count=len({m.source_id for m in members})
            )

        _LOGGER.debug(
            "Computed stats for %d categories from %d observations",
            len(results), sum(s.count for s in results.values())
        )
        return results

    def compute_trends(
        self,
        observations: Iterable[Observation],
        categories: Optional[Sequence[Category]] = None,
        years: Optional[Collection[int]] = None
    ) -> Dict[Category, List[TrendPoint]]:
        """Per-category mean impact per year; years without data are omitted"""
        frame = observations_to_frame(observations)
        if years is not None:
            frame = frame[frame['year'].isin(list(years))]

        trends: Dict[Category, List[TrendPoint]] = {}
        for category in (categories or ALL_CATEGORIES):
            subset = frame[frame['category'] == category.value]
            if subset.empty:
                trends[category] = []
                continue

            grouped = subset.groupby('year')['impact_pct'].agg(['mean', 'count']).sort_index()
            trends[category] = [
                TrendPoint(
                    year=int(year),
                    mean=round_half_up(float(row['mean']), self.trend_precision),
                    count=int(row['count'])
                )
                for year, row in grouped.iterrows()
            ]

        return trends

    def compute_era_comparison(
        self,
        observations: Iterable[Observation],
        categories: Optional[Sequence[Category]] = None
    ) -> List[EraComparison]:
        """Compare mean impact before and after the era boundary year"""
        groups = group_by_category(observations, categories)
        comparisons = []

        for category, members in groups.items():
            early = [m.impact_pct for m in members if m.year <= self.era_boundary_year]
            agentic = [m.impact_pct for m in members if m.year > self.era_boundary_year]

            early_mean = float(np.mean(early)) if early else 0.0
            agentic_mean = float(np.mean(agentic)) if agentic else 0.0

            comparisons.append(EraComparison(
                category=category,
                early_mean=round_half_up(early_mean, 1),
                agentic_mean=round_half_up(agentic_mean, 1),
                delta=round_half_up(agentic_mean - early_mean, 1)
            ))

        return comparisons

    def profile_corpus(self, observations: Iterable[Observation]) -> CorpusProfile:
        """Credibility, data type, category and year breakdown of a corpus"""
        observations = list(observations)

        counts_by_year: Dict[int, int] = {}
        counts_by_credibility = {1: 0, 2: 0, 3: 0}
        counts_by_data_type = {data_type.value: 0 for data_type in ALL_DATA_TYPES}
        counts_by_category = {category.value: 0 for category in ALL_CATEGORIES}
        credibility_by_category = {
            category.value: {'low': 0, 'medium': 0, 'high': 0} for category in ALL_CATEGORIES
        }
        credibility_labels = {1: 'low', 2: 'medium', 3: 'high'}

        for observation in observations:
            counts_by_year[observation.year] = counts_by_year.get(observation.year, 0) + 1
            counts_by_credibility[observation.credibility] = counts_by_credibility.get(observation.credibility, 0) + 1
            counts_by_data_type[observation.data_type.value] += 1
            counts_by_category[observation.category.value] += 1
            label = credibility_labels.get(observation.credibility)
            if label:
                credibility_by_category[observation.category.value][label] += 1

        years = sorted(counts_by_year)
        return CorpusProfile(
            total_observations=len(observations),
            unique_sources=len({o.source_id for o in observations}),
            year_span=(years[0], years[-1]) if years else None,
            available_years=years,
            counts_by_year={year: counts_by_year[year] for year in years},
            counts_by_credibility=counts_by_credibility,
            counts_by_data_type=counts_by_data_type,
            counts_by_category=counts_by_category,
            credibility_by_category=credibility_by_category
        )

    def stats_frame(self, category_stats: Dict[Category, CategoryStats]) -> pd.DataFrame:
        """Tabular view of category statistics in declared category order"""
        rows = [category_stats[c].as_dict() for c in ALL_CATEGORIES if c in category_stats]
        return pd.DataFrame(rows)
