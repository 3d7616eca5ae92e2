"""Dataclasses for raised alerts and evaluated conditions."""
from dataclasses import dataclass, field
from datetime import datetime, timezone

from models.enums import AlertKind


@dataclass(frozen=True)
class ConditionResult:
    condition_key: str
    kind: AlertKind
    message: str = ""
    is_active: bool = False


@dataclass
class Alert:
    id: str = ""
    condition_key: str = ""
    kind: AlertKind = AlertKind.INFO
    message: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "conditionKey": self.condition_key,
            "type": self.kind.value,
            "message": self.message,
            "timestamp": self.created_at.isoformat(),
        }
