import logging

import pytest

from configuration.loader import (
    CURRENT_SCHEMA_VERSION,
    dump_calculator_inputs,
    load_calculator_inputs,
    load_scenario_configs,
)
from configuration.settings import (
    CalculatorInputs,
    ConfigurationError,
    ImpactStatistic,
    ScenarioConfig,
    ScenarioType,
    default_calculator_inputs,
    default_scenario_configs,
    default_transformation_costs,
    team_size_for_budget,
)
from evidence.observations import ALL_CATEGORIES, Category, DataType


def test_default_scenario_presets():
    configs = default_scenario_configs()
    assert configs.pessimistic.years == {2023, 2024}
    assert configs.pessimistic.data_types == {DataType.EMPIRICAL}
    assert configs.pessimistic.adoption_factor == 0.75
    assert configs.realistic.data_types == set(DataType)
    assert configs.optimistic.years == {2025, 2026}
    assert configs.capability_growth.enabled is True
    assert configs.capability_growth.elasticity == 0.5
    assert configs.get(ScenarioType.REALISTIC) is configs.realistic


def test_default_calculator_inputs():
    inputs = default_calculator_inputs()
    assert inputs.team_size == 25
    assert inputs.hourly_rate == pytest.approx(55000 / 1600)
    assert inputs.included_categories == set(ALL_CATEGORIES)
    assert sum(inputs.category_weights.values()) == pytest.approx(1.0)
    assert inputs.transformation_costs.consulting == 15_000_000
    assert inputs.transformation_costs.total == 30_000_000


def test_transformation_costs_follow_budget():
    costs = default_transformation_costs(1_000_000)
    assert (costs.consulting, costs.training, costs.internal) == (150_000, 50_000, 100_000)


def test_team_size_for_budget():
    assert team_size_for_budget(1_100_000, 55_000) == 20
    assert team_size_for_budget(10_000, 55_000) == 1


def test_budget_helpers_round_halves_up():
    assert team_size_for_budget(2_777_500, 55_000) == 51
    assert default_transformation_costs(5).internal == 1


def test_inputs_weights_follow_included_categories():
    inputs = CalculatorInputs(included_categories=frozenset({Category.DEV, Category.QA}))
    assert inputs.category_weights[Category.DEV] == pytest.approx(0.35 / 0.5)
    assert inputs.category_weights[Category.QA] == pytest.approx(0.15 / 0.5)
    assert inputs.category_weights[Category.STRATEGY] == 0
    assert sum(inputs.category_weights.values()) == pytest.approx(1.0)

    dev_only = CalculatorInputs(included_categories=frozenset({Category.DEV}))
    assert dev_only.category_weights[Category.DEV] == pytest.approx(1.0)


def test_toggle_year_refuses_empty_filter():
    config = ScenarioConfig(years=frozenset({2024}), data_types=frozenset({DataType.SURVEY}))
    assert config.with_year_toggled(2025).years == {2024, 2025}
    with pytest.raises(ConfigurationError):
        config.with_year_toggled(2024)
    assert config.years == {2024}


def test_toggle_data_type_refuses_empty_filter():
    config = ScenarioConfig(years=frozenset({2024}), data_types=frozenset({DataType.SURVEY}))
    widened = config.with_data_type_toggled(DataType.VENDOR)
    assert widened.with_data_type_toggled(DataType.SURVEY).data_types == {DataType.VENDOR}
    with pytest.raises(ConfigurationError):
        config.with_data_type_toggled(DataType.SURVEY)


def current_payload():
    return {
        'schema_version': 2,
        'team_size': 12,
        'avg_salary': 70000,
        'hours_per_year': 1750,
        'timeframe_years': 2,
        'included_categories': ['Dev', 'QA'],
        'category_weights': {'Dev': 3, 'QA': 1, 'Spec': 4},
        'inhouse_ratios': {'QA': 0.4},
        'transformation_costs': {'consulting': 5000, 'training': 2000, 'internal': 1000},
        'scenario_configs': {
            'pessimistic': {'years': [2024], 'data_types': ['empirical'], 'adoption_factor': 0.6},
            'realistic': {'years': [2024, 2025], 'data_types': ['empirical', 'survey']},
            'optimistic': {'years': [2025], 'data_types': ['vendor'], 'statistic': 'max'},
            'capability_growth': {'enabled': False, 'doubling_period_months': 7,
                                  'horizon_months': 14, 'elasticity': 1.2},
        },
    }


def test_load_current_payload():
    inputs = load_calculator_inputs(current_payload())
    assert isinstance(inputs, CalculatorInputs)
    assert inputs.team_size == 12
    assert inputs.timeframe_years == 2.0
    assert inputs.included_categories == {Category.DEV, Category.QA}
    assert inputs.category_weights[Category.DEV] == pytest.approx(0.75)
    assert inputs.category_weights[Category.QA] == pytest.approx(0.25)
    assert inputs.category_weights[Category.SPEC] == 0
    assert inputs.inhouse_ratio(Category.QA) == 0.4
    assert inputs.inhouse_ratio(Category.DEV) == 1.0
    assert inputs.transformation_costs.total == 8000

    configs = inputs.scenario_configs
    assert configs.pessimistic.adoption_factor == 0.6
    assert configs.realistic.adoption_factor == 1.0
    assert configs.optimistic.statistic is ImpactStatistic.MAX
    assert configs.capability_growth.enabled is False
    assert configs.capability_growth.horizon_months == 14


def test_dump_and_reload_preserves_values():
    inputs = load_calculator_inputs(current_payload())
    payload = dump_calculator_inputs(inputs)
    assert payload['schema_version'] == CURRENT_SCHEMA_VERSION
    reloaded = load_calculator_inputs(payload)
    assert reloaded.scenario_configs == inputs.scenario_configs
    assert reloaded.included_categories == inputs.included_categories
    assert reloaded.transformation_costs == inputs.transformation_costs
    for category in ALL_CATEGORIES:
        assert reloaded.category_weights[category] == pytest.approx(inputs.category_weights[category])


def test_legacy_payload_is_migrated(caplog):
    payload = {
        'team_size': 5,
        'scenario_configs': {
            'pessimistic': {'years': [2023]},
            'realistic': {'years': [2024], 'data_types': ['survey']},
            'optimistic': {'years': [2025], 'adoption_factor': 1.1},
            'metr_config': {'enabled': True, 'doubling_period_months': 4, 'future_offset_months': 12},
        },
    }
    with caplog.at_level(logging.INFO, logger='configuration.loader'):
        inputs = load_calculator_inputs(payload)

    configs = inputs.scenario_configs
    assert configs.pessimistic.data_types == set(DataType)
    assert configs.pessimistic.adoption_factor == 0.75
    assert configs.realistic.data_types == {DataType.SURVEY}
    assert configs.optimistic.adoption_factor == 1.1
    assert configs.capability_growth.horizon_months == 12
    assert configs.capability_growth.elasticity == 0.5
    assert 'Migrated' in caplog.text
    assert 'metr_config' in payload['scenario_configs']


def test_missing_fields_take_defaults():
    inputs = load_calculator_inputs({'schema_version': 2})
    defaults = default_calculator_inputs()
    assert inputs.team_size == defaults.team_size
    assert inputs.scenario_configs == defaults.scenario_configs
    assert inputs.transformation_costs == defaults.transformation_costs


@pytest.mark.parametrize("mutate, message", [
    (lambda p: p.update(schema_version=9), "schema version"),
    (lambda p: p.update(team_size=0), "team_size"),
    (lambda p: p.update(hours_per_year=-1), "hours_per_year"),
    (lambda p: p.update(included_categories=[]), "At least one category"),
    (lambda p: p.update(included_categories=['Marketing']), "Unknown category"),
    (lambda p: p.update(category_weights={'Dev': 0, 'QA': 0}), "sum to zero"),
    (lambda p: p.update(inhouse_ratios={'Dev': 1.5}), "inhouse ratio"),
    (lambda p: p['transformation_costs'].update(training=-1), "non-negative"),
    (lambda p: p['scenario_configs']['realistic'].update(years=[]), "at least one year"),
    (lambda p: p['scenario_configs']['optimistic'].update(data_types=[]), "at least one data type"),
    (lambda p: p['scenario_configs']['optimistic'].update(data_types=['rumour']), "Unknown data type"),
    (lambda p: p['scenario_configs']['pessimistic'].update(adoption_factor=-0.1), "adoption_factor"),
    (lambda p: p['scenario_configs']['optimistic'].update(statistic='mode'), "impact statistic"),
    (lambda p: p['scenario_configs']['capability_growth'].update(elasticity=0), "elasticity"),
    (lambda p: p['scenario_configs']['capability_growth'].update(elasticity=3.5), "elasticity"),
    (lambda p: p.update(team_size='ten'), "team_size must be numeric"),
    (lambda p: p.update(avg_salary='abc'), "avg_salary must be numeric"),
    (lambda p: p['inhouse_ratios'].update(QA='most'), "inhouse ratio for QA must be numeric"),
    (lambda p: p.update(it_budget=-1), "it_budget must be non-negative"),
    (lambda p: (p.pop('transformation_costs'), p.update(it_budget=-1_000_000)), "it_budget"),
])
def test_invalid_payloads_are_rejected(mutate, message):
    payload = current_payload()
    mutate(payload)
    with pytest.raises(ConfigurationError, match=message):
        load_calculator_inputs(payload)


def test_scenario_block_requires_all_scenarios():
    block = current_payload()['scenario_configs']
    del block['optimistic']
    with pytest.raises(ConfigurationError, match="optimistic"):
        load_scenario_configs(block)


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)
