from dataclasses import dataclass
from enum import Enum

from vitalview.modules.extraction.schemas import VitalField


class AlertCondition(str, Enum):
    NORMAL = "Normal"
    LOW = "Low"
    HIGH = "High"


@dataclass(frozen=True)
class AlertStateKey:
    subject_id: str
    vital_type: VitalField


@dataclass(frozen=True)
class TriggeredAlert:
    vital_type: VitalField
    value: float
    condition: AlertCondition


@dataclass(frozen=True)
class SubjectContext:
    name: str
    location: str
    bed_label: str


PLACEHOLDER_CONTEXT = SubjectContext(
    name="Unknown patient",
    location="Unknown location",
    bed_label="Unknown bed",
)
