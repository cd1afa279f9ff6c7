"""Schema-versioned loading of calculator inputs from plain (JSON-decoded) dicts.

Version 1 payloads predate per-scenario data type filters, adoption factors
and the elasticity exponent, and name the growth block ``metr_config`` with a
``future_offset_months`` horizon. They are migrated once here so the engine
only ever sees fully populated values.
"""
import copy
import logging
from typing import Any, Dict, FrozenSet, Mapping

from configuration.settings import (
    CalculatorInputs,
    CapabilityGrowthConfig,
    ConfigurationError,
    ImpactStatistic,
    ScenarioConfig,
    ScenarioConfigs,
    ScenarioType,
    TransformationCosts,
    default_transformation_costs,
)
from evidence.observations import ALL_CATEGORIES, ALL_DATA_TYPES, Category, DataType
from scenario_modeling.weight_normalizer import DEFAULT_CATEGORY_WEIGHTS, normalize_weights


_LOGGER = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2
SUPPORTED_SCHEMA_VERSIONS = (1, 2)

LEGACY_ADOPTION_FACTORS = {
    ScenarioType.PESSIMISTIC: 0.75,
    ScenarioType.REALISTIC: 1.0,
    ScenarioType.OPTIMISTIC: 1.0,
}
LEGACY_ELASTICITY = 0.5
MAX_ELASTICITY = 3.0


def _migrate_v1(payload: Dict[str, Any]) -> Dict[str, Any]:
    migrated = copy.deepcopy(payload)
    scenario_block = migrated.setdefault('scenario_configs', {})

    for scenario in ScenarioType:
        config = scenario_block.get(scenario.value)
        if config is None:
            continue
        config.setdefault('data_types', [data_type.value for data_type in ALL_DATA_TYPES])
        config.setdefault('adoption_factor', LEGACY_ADOPTION_FACTORS[scenario])

    growth = scenario_block.pop('metr_config', None)
    if growth is not None and 'capability_growth' not in scenario_block:
        if 'future_offset_months' in growth:
            growth['horizon_months'] = growth.pop('future_offset_months')
        scenario_block['capability_growth'] = growth
    if 'capability_growth' in scenario_block:
        scenario_block['capability_growth'].setdefault('elasticity', LEGACY_ELASTICITY)

    migrated['schema_version'] = CURRENT_SCHEMA_VERSION
    _LOGGER.info("Migrated calculator configuration from schema version 1 to %d", CURRENT_SCHEMA_VERSION)
    return migrated


def _upgrade(payload: Mapping[str, Any]) -> Dict[str, Any]:
    version = payload.get('schema_version', 1)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ConfigurationError(f"Unsupported schema version: {version}")
    if version == 1:
        return _migrate_v1(dict(payload))
    return dict(payload)


def _number(value: Any, key: str, kind=float):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be numeric, got {value!r}") from None


def _positive(payload: Mapping[str, Any], key: str, default: float) -> float:
    value = _number(payload.get(key, default), key)
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value


def _parse_category(name: str) -> Category:
    try:
        return Category(name)
    except ValueError:
        raise ConfigurationError(f"Unknown category: {name}") from None


def _parse_data_type(name: str) -> DataType:
    try:
        return DataType(name)
    except ValueError:
        raise ConfigurationError(f"Unknown data type: {name}") from None


def _parse_scenario_config(scenario: ScenarioType, block: Mapping[str, Any]) -> ScenarioConfig:
    years: FrozenSet[int] = frozenset(
        _number(year, f"{scenario.value} years", int) for year in block.get('years', [])
    )
    if not years:
        raise ConfigurationError(f"{scenario.value} scenario must select at least one year")

    data_types = frozenset(_parse_data_type(name) for name in block.get('data_types', []))
    if not data_types:
        raise ConfigurationError(f"{scenario.value} scenario must select at least one data type")

    adoption_factor = _number(block.get('adoption_factor', 1.0), f"{scenario.value} adoption_factor")
    if adoption_factor < 0:
        raise ConfigurationError(f"{scenario.value} adoption_factor must be non-negative")

    statistic = block.get('statistic')
    if statistic is not None:
        try:
            statistic = ImpactStatistic(statistic)
        except ValueError:
            raise ConfigurationError(f"Unknown impact statistic: {statistic}") from None

    return ScenarioConfig(
        years=years,
        data_types=data_types,
        adoption_factor=adoption_factor,
        statistic=statistic
    )


def _parse_capability_growth(block: Mapping[str, Any]) -> CapabilityGrowthConfig:
    defaults = CapabilityGrowthConfig()
    elasticity = _number(block.get('elasticity', defaults.elasticity), 'elasticity')
    if not 0 < elasticity <= MAX_ELASTICITY:
        raise ConfigurationError(f"elasticity must be within (0, {MAX_ELASTICITY}], got {elasticity}")

    return CapabilityGrowthConfig(
        enabled=bool(block.get('enabled', defaults.enabled)),
        doubling_period_months=_positive(block, 'doubling_period_months', defaults.doubling_period_months),
        horizon_months=_positive(block, 'horizon_months', defaults.horizon_months),
        elasticity=elasticity
    )


def load_scenario_configs(payload: Mapping[str, Any]) -> ScenarioConfigs:
    """Build validated scenario configs from a ``scenario_configs`` block"""
    missing = [s.value for s in ScenarioType if s.value not in payload]
    if missing:
        raise ConfigurationError(f"Scenario configuration missing: {missing}")

    return ScenarioConfigs(
        pessimistic=_parse_scenario_config(ScenarioType.PESSIMISTIC, payload['pessimistic']),
        realistic=_parse_scenario_config(ScenarioType.REALISTIC, payload['realistic']),
        optimistic=_parse_scenario_config(ScenarioType.OPTIMISTIC, payload['optimistic']),
        capability_growth=_parse_capability_growth(payload.get('capability_growth', {}))
    )


def load_calculator_inputs(payload: Mapping[str, Any]) -> CalculatorInputs:
    """Validate, migrate and normalize a serialized calculator configuration"""
    data = _upgrade(payload)
    defaults = CalculatorInputs()

    team_size = _number(data.get('team_size', defaults.team_size), 'team_size', int)
    if team_size <= 0:
        raise ConfigurationError(f"team_size must be positive, got {team_size}")

    included_names = data.get('included_categories', [c.value for c in ALL_CATEGORIES])
    included = frozenset(_parse_category(name) for name in included_names)
    if not included:
        raise ConfigurationError("At least one category must be included")

    raw_weights = data.get('category_weights')
    if raw_weights is None:
        base_weights = dict(DEFAULT_CATEGORY_WEIGHTS)
    else:
        base_weights = {
            _parse_category(name): _number(w, f"category_weights.{name}") for name, w in raw_weights.items()
        }
    if any(w < 0 for w in base_weights.values()):
        raise ConfigurationError("category_weights must be non-negative")
    weights = normalize_weights(base_weights, included)
    if sum(weights.values()) == 0:
        raise ConfigurationError("Weights of included categories sum to zero; redistribute them")

    inhouse_ratios = {category: 1.0 for category in ALL_CATEGORIES}
    for name, ratio in data.get('inhouse_ratios', {}).items():
        ratio = _number(ratio, f"inhouse ratio for {name}")
        if not 0.0 <= ratio <= 1.0:
            raise ConfigurationError(f"inhouse ratio for {name} must be within [0, 1], got {ratio}")
        inhouse_ratios[_parse_category(name)] = ratio

    it_budget = data.get('it_budget', defaults.it_budget)
    if it_budget is not None:
        it_budget = _number(it_budget, 'it_budget')
        if it_budget < 0:
            raise ConfigurationError(f"it_budget must be non-negative, got {it_budget}")

    costs_block = data.get('transformation_costs')
    if costs_block is None:
        costs = default_transformation_costs(it_budget or 0.0)
    else:
        costs = TransformationCosts(
            consulting=_number(costs_block.get('consulting', 0.0), 'transformation_costs.consulting'),
            training=_number(costs_block.get('training', 0.0), 'transformation_costs.training'),
            internal=_number(costs_block.get('internal', 0.0), 'transformation_costs.internal')
        )
        if min(costs.consulting, costs.training, costs.internal) < 0:
            raise ConfigurationError("transformation_costs must be non-negative")

    scenario_block = data.get('scenario_configs')
    scenario_configs = (
        load_scenario_configs(scenario_block) if scenario_block is not None
        else defaults.scenario_configs
    )

    return CalculatorInputs(
        team_size=team_size,
        avg_salary=_positive(data, 'avg_salary', defaults.avg_salary),
        hours_per_year=_positive(data, 'hours_per_year', defaults.hours_per_year),
        included_categories=included,
        category_weights=weights,
        inhouse_ratios=inhouse_ratios,
        transformation_costs=costs,
        timeframe_years=_positive(data, 'timeframe_years', defaults.timeframe_years),
        scenario_configs=scenario_configs,
        it_budget=it_budget
    )


def dump_scenario_configs(configs: ScenarioConfigs) -> Dict[str, Any]:
    block: Dict[str, Any] = {}
    for scenario in ScenarioType:
        config = configs.get(scenario)
        block[scenario.value] = {
            'years': sorted(config.years),
            'data_types': [dt.value for dt in ALL_DATA_TYPES if dt in config.data_types],
            'adoption_factor': config.adoption_factor,
            'statistic': config.statistic.value if config.statistic else None,
        }
    growth = configs.capability_growth
    block['capability_growth'] = {
        'enabled': growth.enabled,
        'doubling_period_months': growth.doubling_period_months,
        'horizon_months': growth.horizon_months,
        'elasticity': growth.elasticity,
    }
    return block


def dump_calculator_inputs(inputs: CalculatorInputs) -> Dict[str, Any]:
    """Serialize inputs in the current schema version"""
    return {
        'schema_version': CURRENT_SCHEMA_VERSION,
        'team_size': inputs.team_size,
        'avg_salary': inputs.avg_salary,
        'hours_per_year': inputs.hours_per_year,
        'it_budget': inputs.it_budget,
        'timeframe_years': inputs.timeframe_years,
        'included_categories': [c.value for c in ALL_CATEGORIES if c in inputs.included_categories],
        'category_weights': {c.value: inputs.category_weights.get(c, 0.0) for c in ALL_CATEGORIES},
        'inhouse_ratios': {c.value: inputs.inhouse_ratio(c) for c in ALL_CATEGORIES},
        'transformation_costs': {
            'consulting': inputs.transformation_costs.consulting,
            'training': inputs.transformation_costs.training,
            'internal': inputs.transformation_costs.internal,
        },
        'scenario_configs': dump_scenario_configs(inputs.scenario_configs),
    }
