import importlib
import json

import pytest

import budget_engine.config as config
from budget_engine.settings import load_thresholds, threshold_section


def test_bundled_thresholds():
    thresholds = load_thresholds()

    assert thresholds['savings_rate']['good'] == 20
    assert thresholds['emergency_fund']['warning_months'] == 3
    assert threshold_section('recommendations')['max_results'] == 5
    assert threshold_section('goal_interactions')['days_per_month'] == 30.44


def test_missing_section_names_it():
    with pytest.raises(ValueError, match='pension'):
        threshold_section('pension')


def test_missing_threshold_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_thresholds(tmp_path / 'none.json')


def test_invalid_threshold_files(tmp_path):
    broken = tmp_path / 'broken.json'
    broken.write_text('{"savings_rate": ', encoding='utf-8')
    flat = tmp_path / 'flat.json'
    flat.write_text(json.dumps({'savings_rate': 20}), encoding='utf-8')

    with pytest.raises(ValueError, match='not valid JSON'):
        load_thresholds(broken)
    with pytest.raises(ValueError, match='savings_rate'):
        load_thresholds(flat)


def test_custom_threshold_file(tmp_path):
    custom = tmp_path / 'custom.json'
    custom.write_text(json.dumps({'emergency_fund': {'good_months': 9}}), encoding='utf-8')

    assert threshold_section('emergency_fund', custom) == {'good_months': 9}


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv('BUDGET_ENGINE_TIMEZONE', 'UTC')
    monkeypatch.setenv('BUDGET_ENGINE_CARRYOVER_MODE', 'full')
    monkeypatch.setenv('BUDGET_ENGINE_SNAPSHOT_DIR', str(tmp_path))
    try:
        reloaded = importlib.reload(config)
        assert reloaded.DEFAULT_BUDGET_TIMEZONE == 'UTC'
        assert reloaded.DEFAULT_CARRYOVER_MODE == 'full'
        assert reloaded.SNAPSHOT_DIR == tmp_path.resolve()
    finally:
        monkeypatch.undo()
        importlib.reload(config)


def test_defaults():
    assert config.DEFAULT_BUDGET_TIMEZONE == 'Australia/Sydney'
    assert config.DEFAULT_CARRYOVER_MODE == 'none'
    assert config.PERIOD_TYPES == ('weekly', 'fortnightly', 'monthly')
    assert config.BUDGET_VIEWS == ('individual', 'shared')
