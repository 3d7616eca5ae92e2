"""Threshold evaluation: snapshot + config -> condition results.

Pure and stateless. Every known condition is reported on every call, active
or not, so the lifecycle manager can auto-clear whatever is no longer true.
"""
import logging
from collections import namedtuple

from models.alerts import ConditionResult
from models.enums import AlertKind, ConditionKey, Parameter
from utils.coerce import is_finite, to_float
from utils.formatters import format_fixed, format_number
from utils.units import normalize_salinity

logger = logging.getLogger("reefmonitor.alerts.evaluator")

RangeRule = namedtuple("RangeRule", [
    "parameter", "low_key", "high_key", "kind", "enabled_attr",
    "min_attr", "max_attr", "low_label", "high_label", "decimals", "unit", "normalize",
])


def _identity(value):
    return to_float(value)


# Temperature has no enable flag: out-of-range temperature is always a hard fault.
RULES = [
    RangeRule(Parameter.TEMPERATURE, ConditionKey.TEMP_LOW, ConditionKey.TEMP_HIGH, AlertKind.ERROR,
              None, "temp_min", "temp_max", "Temperatura baixa", "Temperatura alta", 1, "°C", _identity),
    RangeRule(Parameter.PH, ConditionKey.PH_LOW, ConditionKey.PH_HIGH, AlertKind.WARNING,
              "ph_alert_enabled", "ph_min", "ph_max", "pH baixo", "pH alto", 2, "", _identity),
    RangeRule(Parameter.SALINITY, ConditionKey.SAL_LOW, ConditionKey.SAL_HIGH, AlertKind.WARNING,
              "salinity_alert_enabled", "salinity_min", "salinity_max",
              "Salinidade baixa", "Salinidade alta", 3, " SG", normalize_salinity),
    RangeRule(Parameter.TDS, ConditionKey.TDS_LOW, ConditionKey.TDS_HIGH, AlertKind.INFO,
              "tds_alert_enabled", "tds_min", "tds_max", "TDS baixo", "TDS alto", 0, " ppm", _identity),
]

CONDITION_KEYS = [key.value for rule in RULES for key in (rule.low_key, rule.high_key)]


def _message(label, value, bound_name, bound, decimals, unit):
    return f"{label}: {format_fixed(value, decimals)}{unit} ({bound_name}: {format_number(bound)}{unit})"


class AlertEvaluator:
    """Compares a ParameterSnapshot against a ThresholdConfig."""

    def __init__(self, rules=None):
        self.rules = rules or RULES

    def evaluate_rule(self, rule, snapshot, config):
        """Return (low, high) ConditionResults for one parameter."""
        low = ConditionResult(rule.low_key.value, rule.kind, "", False)
        high = ConditionResult(rule.high_key.value, rule.kind, "", False)

        if not config.alerts_enabled:
            return low, high
        if rule.enabled_attr and not getattr(config, rule.enabled_attr):
            return low, high

        value = rule.normalize(getattr(snapshot, rule.parameter.value))
        lo = rule.normalize(getattr(config, rule.min_attr))
        hi = rule.normalize(getattr(config, rule.max_attr))
        if not is_finite(value, lo, hi):
            logger.debug(f"Skipping {rule.parameter.value}: non-finite value or bounds ({value}, {lo}, {hi})")
            return low, high

        # Low wins on an inverted range, so the pair stays mutually exclusive.
        if value < lo:
            low = ConditionResult(
                rule.low_key.value, rule.kind,
                _message(rule.low_label, value, "mín", lo, rule.decimals, rule.unit), True,
            )
        elif value > hi:
            high = ConditionResult(
                rule.high_key.value, rule.kind,
                _message(rule.high_label, value, "máx", hi, rule.decimals, rule.unit), True,
            )
        return low, high

    def evaluate(self, snapshot, config):
        """Evaluate every rule. Never raises; bad data yields inactive results."""
        results = []
        for rule in self.rules:
            try:
                results.extend(self.evaluate_rule(rule, snapshot, config))
            except (AttributeError, TypeError, ValueError, OverflowError) as e:
                logger.warning(f"Evaluation of {rule.parameter.value} failed: {e}")
                results.append(ConditionResult(rule.low_key.value, rule.kind, "", False))
                results.append(ConditionResult(rule.high_key.value, rule.kind, "", False))
        return results

    def active_conditions(self, snapshot, config):
        return [r for r in self.evaluate(snapshot, config) if r.is_active]
