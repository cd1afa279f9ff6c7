import pandas as pd
from typing import Dict, Iterable, List, Optional, Sequence, Collection
from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum


class Category(Enum):
    """Workflow phases, declared in display order"""
    STRATEGY = "Strategy"
    DESIGN = "Design"
    SPEC = "Spec"
    DEV = "Dev"
    QA = "QA"
    DEVOPS = "DevOps"

    @classmethod
    def ordered(cls) -> List["Category"]:
        return list(cls)


class DataType(Enum):
    EMPIRICAL = "empirical"
    SURVEY = "survey"
    VENDOR = "vendor"
    ANECDOTAL = "anecdotal"


ALL_CATEGORIES: List[Category] = Category.ordered()
ALL_DATA_TYPES: List[DataType] = list(DataType)

OBSERVATION_COLUMNS = [
    'observation_id', 'category', 'impact_pct', 'year', 'publish_date',
    'source_id', 'source_url', 'data_type', 'description', 'sample_size',
    'credibility'
]


@dataclass(frozen=True)
class Observation:
    observation_id: str
    category: Category
    impact_pct: float
    year: int
    source_id: str
    data_type: DataType
    description: str = ""
    credibility: int = 2
    publish_date: Optional[date] = None
    source_url: Optional[str] = None
    sample_size: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        record = asdict(self)
        record['category'] = self.category.value
        record['data_type'] = self.data_type.value
        record['publish_date'] = self.publish_date.isoformat() if self.publish_date else None
        return record


def filter_observations(
    observations: Iterable[Observation],
    years: Optional[Collection[int]] = None,
    data_types: Optional[Collection[DataType]] = None,
    categories: Optional[Collection[Category]] = None
) -> List[Observation]:
    """Select observations matching every given filter; None means no restriction"""
    selected = []
    for observation in observations:
        if years is not None and observation.year not in years:
            continue
        if data_types is not None and observation.data_type not in data_types:
            continue
        if categories is not None and observation.category not in categories:
            continue
        selected.append(observation)
    return selected


def group_by_category(
    observations: Iterable[Observation],
    categories: Optional[Sequence[Category]] = None
) -> Dict[Category, List[Observation]]:
    """Group observations per category, every requested category present"""
    groups: Dict[Category, List[Observation]] = {
        category: [] for category in (categories or ALL_CATEGORIES)
    }
    for observation in observations:
        if observation.category in groups:
            groups[observation.category].append(observation)
    return groups


def observations_to_frame(observations: Iterable[Observation]) -> pd.DataFrame:
    """Tabular view of observations for grouping and export consumers"""
    records = [observation.as_dict() for observation in observations]
    return pd.DataFrame.from_records(records, columns=OBSERVATION_COLUMNS)
