from datetime import datetime, timezone
from typing import Optional

from beanie import Document
from pydantic import Field
from pymongo import IndexModel

from vitalview.modules.extraction.schemas import VitalsRecord, VitalsSource


class Reading(Document):
    """Persisted monitor reading for one subject."""

    subject_id: str
    hr: Optional[float] = None
    pulse: Optional[float] = None
    spo2: Optional[float] = None
    abp: Optional[str] = None
    pap: Optional[str] = None
    etco2: Optional[float] = None
    awrr: Optional[float] = None
    source: VitalsSource = VitalsSource.NONE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "vitals"
        indexes = [
            IndexModel(
                [
                    ("subject_id", 1),
                    ("created_at", -1),
                ]
            )
        ]

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
