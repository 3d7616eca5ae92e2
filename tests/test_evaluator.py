"""Tests for threshold evaluation."""
import math
import pytest

from alerts.evaluator import AlertEvaluator, CONDITION_KEYS
from models.enums import AlertKind
from models.parameters import ParameterSnapshot
from models.settings import ThresholdConfig


def _snap(temperature=25.5, ph=8.2, salinity=1.025, tds=250):
    return ParameterSnapshot(temperature=temperature, ph=ph, salinity=salinity, tds=tds)


def _active(results):
    return {r.condition_key: r for r in results if r.is_active}


@pytest.fixture
def evaluator():
    return AlertEvaluator()


# ── Coverage of conditions ─────────────────────────────

def test_reports_every_condition(evaluator, default_config, healthy_snapshot):
    results = evaluator.evaluate(healthy_snapshot, default_config)
    assert [r.condition_key for r in results] == CONDITION_KEYS
    assert not any(r.is_active for r in results)


# ── Temperature ────────────────────────────────────────

def test_temp_low_message(evaluator):
    config = ThresholdConfig(temp_min=24.0)
    active = _active(evaluator.evaluate(_snap(temperature=23.5), config))
    assert list(active) == ["temp-low"]
    assert active["temp-low"].kind == AlertKind.ERROR
    assert active["temp-low"].message == "Temperatura baixa: 23.5°C (mín: 24°C)"


def test_temp_high_message(evaluator, default_config):
    active = _active(evaluator.evaluate(_snap(temperature=27.4), default_config))
    assert active["temp-high"].message == "Temperatura alta: 27.4°C (máx: 27°C)"


def test_temp_at_bound_is_not_alert(evaluator, default_config):
    assert _active(evaluator.evaluate(_snap(temperature=24.0), default_config)) == {}
    assert _active(evaluator.evaluate(_snap(temperature=27.0), default_config)) == {}


def test_temp_has_no_enable_flag(evaluator):
    config = ThresholdConfig(ph_alert_enabled=False, salinity_alert_enabled=False, tds_alert_enabled=False)
    active = _active(evaluator.evaluate(_snap(temperature=30), config))
    assert "temp-high" in active


# ── pH ─────────────────────────────────────────────────

def test_ph_in_range(evaluator, default_config):
    assert _active(evaluator.evaluate(_snap(ph=8.2), default_config)) == {}


def test_ph_low_and_high(evaluator, default_config):
    low = _active(evaluator.evaluate(_snap(ph=7.85), default_config))
    assert low["ph-low"].message == "pH baixo: 7.85 (mín: 8)"
    assert low["ph-low"].kind == AlertKind.WARNING

    high = _active(evaluator.evaluate(_snap(ph=8.5), default_config))
    assert high["ph-high"].message == "pH alto: 8.50 (máx: 8.4)"


def test_ph_disabled_forces_inactive(evaluator):
    config = ThresholdConfig(ph_alert_enabled=False)
    results = evaluator.evaluate(_snap(ph=6.0), config)
    ph = [r for r in results if r.condition_key.startswith("ph-")]
    assert len(ph) == 2
    assert not any(r.is_active for r in ph)


# ── Salinity ───────────────────────────────────────────

def test_salinity_raw_reading_normalized(evaluator):
    config = ThresholdConfig(salinity_min=1.022, salinity_max=1.028)
    assert _active(evaluator.evaluate(_snap(salinity=1025), config)) == {}


def test_salinity_low_message(evaluator, default_config):
    active = _active(evaluator.evaluate(_snap(salinity=1019), default_config))
    assert active["sal-low"].message == "Salinidade baixa: 1.019 SG (mín: 1.022 SG)"


def test_salinity_legacy_bounds(evaluator):
    config = ThresholdConfig(salinity_min=1022, salinity_max=1028)
    active = _active(evaluator.evaluate(_snap(salinity=1.030), config))
    assert active["sal-high"].message == "Salinidade alta: 1.030 SG (máx: 1.028 SG)"


@pytest.mark.parametrize("salinity, bounds", [
    (math.nan, (1.022, 1.028)),
    (math.inf, (1.022, 1.028)),
    (1.0, (math.nan, 1.028)),
    (1.1, (1.022, math.inf)),
])
def test_salinity_non_finite_is_inactive(evaluator, salinity, bounds):
    config = ThresholdConfig(salinity_min=bounds[0], salinity_max=bounds[1])
    results = evaluator.evaluate(_snap(salinity=salinity), config)
    assert not any(r.is_active for r in results if r.condition_key.startswith("sal-"))


# ── TDS ────────────────────────────────────────────────

def test_tds_integer_formatting(evaluator, default_config):
    high = _active(evaluator.evaluate(_snap(tds=450), default_config))
    assert high["tds-high"].message == "TDS alto: 450 ppm (máx: 400 ppm)"
    assert high["tds-high"].kind == AlertKind.INFO

    low = _active(evaluator.evaluate(_snap(tds=90.4), default_config))
    assert low["tds-low"].message == "TDS baixo: 90 ppm (mín: 100 ppm)"


# ── Global gate, bad data, ranges ──────────────────────

def test_global_disable_reports_nothing_active(evaluator):
    config = ThresholdConfig(alerts_enabled=False)
    results = evaluator.evaluate(_snap(temperature=18, ph=7, salinity=1.010, tds=900), config)
    assert len(results) == len(CONDITION_KEYS)
    assert not any(r.is_active for r in results)


def test_missing_readings_are_inactive(evaluator, default_config):
    results = evaluator.evaluate(ParameterSnapshot(), default_config)
    assert not any(r.is_active for r in results)


def test_garbage_reading_is_inactive(evaluator, default_config):
    snapshot = ParameterSnapshot(temperature="hot", ph=None, salinity="?", tds=[])
    assert evaluator.active_conditions(snapshot, default_config) == []


def test_oversized_integer_reading_is_inactive(evaluator, default_config):
    huge = 10 ** 400
    snapshot = ParameterSnapshot(temperature=huge, ph=huge, salinity=huge, tds=huge)
    results = evaluator.evaluate(snapshot, default_config)
    assert [r.condition_key for r in results] == CONDITION_KEYS
    assert not any(r.is_active for r in results)


def test_inverted_range_reports_one_direction(evaluator):
    config = ThresholdConfig(ph_min=8.4, ph_max=8.0)
    for ph, expected in [(8.2, "ph-low"), (7.0, "ph-low"), (9.0, "ph-high")]:
        active = _active(evaluator.evaluate(_snap(ph=ph), config))
        assert list(active) == [expected]


def test_low_and_high_mutually_exclusive(evaluator, default_config):
    for i in range(0, 120):
        temperature = 20 + i * 0.1
        ph = 7.5 + i * 0.01
        tds = i * 5
        active = _active(evaluator.evaluate(_snap(temperature=temperature, ph=ph, tds=tds), default_config))
        for prefix in ("temp", "ph", "sal", "tds"):
            assert not (f"{prefix}-low" in active and f"{prefix}-high" in active)


def test_evaluate_has_no_state(evaluator, default_config):
    cold = _snap(temperature=20)
    first = evaluator.evaluate(cold, default_config)
    evaluator.evaluate(_snap(), default_config)
    assert evaluator.evaluate(cold, default_config) == first
