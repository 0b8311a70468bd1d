import math
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vitalview.shared.schemas import CamelModel, FrozenCamelModel


class VitalField(str, Enum):
    """Canonical vitals keys as shown on the monitor."""

    HR = "HR"
    PULSE = "Pulse"
    SPO2 = "SpO2"
    ABP = "ABP"
    PAP = "PAP"
    ETCO2 = "EtCO2"
    AWRR = "awRR"


VITAL_FIELDS: tuple[VitalField, ...] = tuple(VitalField)
NUMERIC_FIELDS: tuple[VitalField, ...] = (
    VitalField.HR,
    VitalField.PULSE,
    VitalField.SPO2,
    VitalField.ETCO2,
    VitalField.AWRR,
)
PRESSURE_FIELDS: tuple[VitalField, ...] = (VitalField.ABP, VitalField.PAP)

# Python attribute name for each canonical key
FIELD_ATTRS: dict[VitalField, str] = {
    VitalField.HR: "hr",
    VitalField.PULSE: "pulse",
    VitalField.SPO2: "spo2",
    VitalField.ABP: "abp",
    VitalField.PAP: "pap",
    VitalField.ETCO2: "etco2",
    VitalField.AWRR: "awrr",
}


class VitalsSource(str, Enum):
    """Which recognition provider produced a record."""

    PRIMARY = "primary-vlm"
    SECONDARY_A = "secondary-a"
    SECONDARY_B = "secondary-b"
    NONE = "none"


# "120/80", "120/80/93" or the monitor notation "120/80 (93)"
_PRESSURE_RE = re.compile(
    r"^\s*(\d{1,3})\s*/\s*(\d{1,3})\s*(?:/\s*(\d{1,3})|\(\s*(\d{1,3})\s*\))?\s*$"
)


def parse_number(value: Any) -> float | None:
    """Return a finite float for numeric input, None for anything illegible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_pressure(value: Any) -> str | None:
    """Canonicalise a pressure reading to ``sys/dia`` or ``sys/dia/mean``."""
    if not isinstance(value, str):
        return None
    match = _PRESSURE_RE.match(value)
    if not match:
        return None
    systolic, diastolic, mean_slash, mean_paren = match.groups()
    mean = mean_slash or mean_paren
    parts = [str(int(systolic)), str(int(diastolic))]
    if mean:
        parts.append(str(int(mean)))
    return "/".join(parts)


class VitalsRecord(BaseModel):
    """
    One reading of the monitor. Every field is independently nullable: None means
    the value was not legible, never zero. Records are frozen; use ``with_source``
    or ``model_copy`` to derive a new one.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hr: float | None = Field(default=None, alias="HR")
    pulse: float | None = Field(default=None, alias="Pulse")
    spo2: float | None = Field(default=None, alias="SpO2")
    abp: str | None = Field(default=None, alias="ABP")
    pap: str | None = Field(default=None, alias="PAP")
    etco2: float | None = Field(default=None, alias="EtCO2")
    awrr: float | None = Field(default=None, alias="awRR")
    source: VitalsSource = VitalsSource.NONE

    @field_validator("hr", "pulse", "spo2", "etco2", "awrr", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_number(value)

    @field_validator("abp", "pap", mode="before")
    @classmethod
    def coerce_pressure(cls, value: Any) -> str | None:
        return parse_pressure(value)

    @classmethod
    def empty(cls, source: VitalsSource = VitalsSource.NONE) -> "VitalsRecord":
        return cls(source=source)

    def value_of(self, field: VitalField) -> float | str | None:
        return getattr(self, FIELD_ATTRS[field])

    def vitals(self) -> dict[str, float | str | None]:
        """Canonical key -> value mapping, without the source tag."""
        return {field.value: self.value_of(field) for field in VITAL_FIELDS}

    def with_source(self, source: VitalsSource) -> "VitalsRecord":
        return self.model_copy(update={"source": source})

    @property
    def is_empty(self) -> bool:
        return all(self.value_of(field) is None for field in VITAL_FIELDS)


class RegionHint(FrozenCamelModel):
    """Labelled, normalised screen position where a vital is expected."""

    label: str = Field(min_length=1)
    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)

    def describe(self) -> str:
        return f"{self.label}: located at coordinates ({self.x * 100:.0f}%, {self.y * 100:.0f}%)"


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    vitals: VitalsRecord
    source: VitalsSource

    def to_payload(self) -> dict[str, Any]:
        return {"vitals": self.vitals.vitals(), "source": self.source.value}


class ExtractionRequest(CamelModel):
    """Inbound frame for extraction; region hints are optional."""

    image_base64: str | None = None
    rois: list[RegionHint] = Field(default_factory=list)


class BatchExtractionRequest(CamelModel):
    """A sequence of frames (e.g. sampled from a video) sharing one set of hints."""

    frames: list[str | None] = Field(default_factory=list)
    rois: list[RegionHint] = Field(default_factory=list)

    @field_validator("frames")
    @classmethod
    def ensure_non_empty(cls, value: list[str | None]) -> list[str | None]:
        if not value:
            raise ValueError("frames list cannot be empty")
        return value


class ExtractionResponse(BaseModel):
    vitals: dict[str, float | str | None]
    source: VitalsSource
