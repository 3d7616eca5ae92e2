"""Parameter snapshot delivered by the data-acquisition side on each tick."""
import math
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone

from utils.coerce import to_float


@dataclass(frozen=True)
class ParameterSnapshot:
    temperature: float = math.nan
    ph: float = math.nan
    salinity: float = math.nan  # raw; SG or SG x 1000
    tds: float = math.nan
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @classmethod
    def from_dict(cls, data):
        """Build a snapshot from device/JSON fields. Bad or missing values become NaN."""
        data = data or {}
        return cls(
            temperature=to_float(data.get("temperature")),
            ph=to_float(data.get("ph")),
            salinity=to_float(data.get("salinity")),
            tds=to_float(data.get("tds")),
        )

    def to_dict(self):
        """JSON-friendly form; missing readings become None."""
        d = {k: (None if isinstance(v, float) and math.isnan(v) else v) for k, v in asdict(self).items()}
        d["timestamp"] = self.timestamp.isoformat()
        return d
