from typing import Dict, Iterable, Mapping, Collection, Optional

from evidence.observations import ALL_CATEGORIES, Category, Observation


# Static share of engineering effort per phase, used when no evidence exists
DEFAULT_CATEGORY_WEIGHTS: Dict[Category, float] = {
    Category.STRATEGY: 0.10,
    Category.DESIGN: 0.15,
    Category.SPEC: 0.15,
    Category.DEV: 0.35,
    Category.QA: 0.15,
    Category.DEVOPS: 0.10,
}


def normalize_weights(
    base_weights: Mapping[Category, float],
    included_categories: Collection[Category]
) -> Dict[Category, float]:
    """Rescale weights so included categories sum to 1.0; excluded get 0.

    An all-zero included set yields all zeros; redistributing is up to the caller.
    """
    total = sum(base_weights.get(c, 0.0) for c in ALL_CATEGORIES if c in included_categories)

    normalized: Dict[Category, float] = {}
    for category in ALL_CATEGORIES:
        if category in included_categories and total > 0:
            normalized[category] = base_weights.get(category, 0.0) / total
        else:
            normalized[category] = 0.0
    return normalized


def default_weights_from_data(
    observations: Iterable[Observation],
    fallback: Optional[Mapping[Category, float]] = None
) -> Dict[Category, float]:
    """Weight each category by its share of observations in the corpus"""
    fallback = fallback if fallback is not None else DEFAULT_CATEGORY_WEIGHTS

    counts = {category: 0 for category in ALL_CATEGORIES}
    for observation in observations:
        counts[observation.category] = counts.get(observation.category, 0) + 1
    total = sum(counts.values())

    return {
        category: counts[category] / total if total > 0 else fallback.get(category, 0.0)
        for category in ALL_CATEGORIES
    }
