from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed, Insert, Replace, Save, Update, before_event
from pydantic import Field


class Patient(Document):
    """A monitored bed occupant; ``subject_id`` matches the id readings are filed under."""

    subject_id: Indexed(str, unique=True)  # type: ignore
    name: str
    bed_label: Optional[str] = None
    icu_name: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @before_event(Insert, Replace, Save, Update)
    def update_updated_at(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    class Settings:
        name = "patients"
