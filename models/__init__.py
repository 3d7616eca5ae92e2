"""Data models."""
from models.enums import Parameter, AlertKind, ConditionKey
from models.alerts import Alert, ConditionResult
from models.parameters import ParameterSnapshot
from models.settings import ThresholdConfig, SETTINGS_FIELDS
