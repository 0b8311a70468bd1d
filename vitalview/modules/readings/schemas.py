from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from vitalview.modules.extraction.schemas import (
    VitalsRecord,
    VitalsSource,
    parse_number,
    parse_pressure,
)
from vitalview.shared.schemas import CamelModel

# Open upper bound for heart and pulse rate; anything at or above is a misread.
MAX_PLAUSIBLE_RATE = 300.0
MAX_SPO2 = 100.0


class ReadingCreate(CamelModel):
    """
    One reading to persist. Numeric fields outside their plausible range are
    stored as null rather than rejected.
    """

    subject_id: str = Field(min_length=1)
    hr: Optional[float] = None
    pulse: Optional[float] = None
    spo2: Optional[float] = None
    abp: Optional[str] = None
    pap: Optional[str] = None
    etco2: Optional[float] = None
    awrr: Optional[float] = None
    source: VitalsSource = VitalsSource.NONE
    created_at: Optional[datetime] = None

    @field_validator("subject_id", mode="before")
    @classmethod
    def stringify_subject(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("hr", "pulse", "spo2", "etco2", "awrr", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float | None:
        return parse_number(value)

    @field_validator("abp", "pap", mode="before")
    @classmethod
    def coerce_pressure(cls, value: Any) -> str | None:
        return parse_pressure(value)

    @field_validator("hr", "pulse")
    @classmethod
    def clamp_rate(cls, value: float | None) -> float | None:
        if value is None or not 0 < value < MAX_PLAUSIBLE_RATE:
            return None
        return value

    @field_validator("spo2")
    @classmethod
    def clamp_saturation(cls, value: float | None) -> float | None:
        if value is None or not 0 < value <= MAX_SPO2:
            return None
        return value

    @classmethod
    def from_record(cls, subject_id: str, record: VitalsRecord) -> "ReadingCreate":
        return cls(
            subject_id=subject_id,
            hr=record.hr,
            pulse=record.pulse,
            spo2=record.spo2,
            abp=record.abp,
            pap=record.pap,
            etco2=record.etco2,
            awrr=record.awrr,
            source=record.source,
        )

    def to_record(self) -> VitalsRecord:
        return VitalsRecord(
            hr=self.hr,
            pulse=self.pulse,
            spo2=self.spo2,
            abp=self.abp,
            pap=self.pap,
            etco2=self.etco2,
            awrr=self.awrr,
            source=self.source,
        )


class ReadingSaveResponse(CamelModel):
    success: bool = True
    count: int


class ReadingOut(CamelModel):
    id: Optional[str] = None
    subject_id: str
    hr: Optional[float] = None
    pulse: Optional[float] = None
    spo2: Optional[float] = None
    abp: Optional[str] = None
    pap: Optional[str] = None
    etco2: Optional[float] = None
    awrr: Optional[float] = None
    source: VitalsSource
    created_at: datetime
