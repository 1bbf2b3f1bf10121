from datetime import datetime, timedelta
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any, Sequence

class Measurement(BaseModel):
    """One request/response cycle as seen by the post-dispatch hook."""

    model_config = ConfigDict(frozen=True)

    elapsed: timedelta
    method: str
    request_uri: str                      # raw request target, e.g. '/stuff?rly=ya'
    client_addr: str
    status_code: Optional[int] = None     # None when the hook runs without a response

    @property
    def request_id(self) -> str:
        return f"{self.method} {self.request_uri}"

    @property
    def elapsed_us(self) -> float:
        return self.elapsed / timedelta(microseconds=1)


class Dimension(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1, max_length=1024)

    def to_cloudwatch(self) -> Dict[str, str]:
        return {"Name": self.name, "Value": self.value}


class MetricDatum(BaseModel):
    metric_name: str = Field(..., min_length=1)
    value: float
    unit: str = "None"                    # CloudWatch StandardUnit, e.g. 'Microseconds'
    timestamp: datetime
    dimensions: List[Dimension] = Field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        # Dimension order is kept on the wire but is not part of identity
        if not isinstance(other, MetricDatum):
            return NotImplemented
        return (
            self.metric_name == other.metric_name
            and self.value == other.value
            and self.unit == other.unit
            and self.timestamp == other.timestamp
            and self._dimension_set() == other._dimension_set()
        )

    def _dimension_set(self) -> frozenset:
        return frozenset((d.name, d.value) for d in self.dimensions)

    def dimension(self, name: str) -> Optional[str]:
        for d in self.dimensions:
            if d.name == name:
                return d.value
        return None

    def to_cloudwatch(self) -> Dict[str, Any]:
        """Render the botocore ``MetricDatum`` shape used by PutMetricData."""
        return {
            "MetricName": self.metric_name,
            "Dimensions": [d.to_cloudwatch() for d in self.dimensions],
            "Timestamp": self.timestamp,
            "Unit": self.unit,
            "Value": self.value,
        }


# A batch is sent to the backend in a single emission call
MetricBatch = Sequence[MetricDatum]
