from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import structlog

from vitalview.modules.alerts.engine import AlertService
from vitalview.modules.alerts.service import alert_service
from vitalview.modules.readings.manager import VitalConnectionManager
from vitalview.modules.readings.models import Reading
from vitalview.modules.readings.schemas import ReadingCreate, ReadingOut

log = structlog.get_logger()

VITAL_UPDATE_EVENT = "vital-update"


class ReadingService:
    """
    Write path for readings: persist, fan out to viewers, then hand each reading to
    alerting. Alert delivery runs in the background so it cannot delay or fail the write.
    """

    def __init__(
        self, manager: VitalConnectionManager, alerts: AlertService | None = None
    ) -> None:
        self._manager = manager
        self._alerts = alerts

    async def record(self, readings_in: Sequence[ReadingCreate]) -> List[Reading]:
        if not readings_in:
            return []

        now = self._normalize_timestamp(datetime.now(timezone.utc))
        readings = [
            Reading(
                subject_id=reading_in.subject_id,
                hr=reading_in.hr,
                pulse=reading_in.pulse,
                spo2=reading_in.spo2,
                abp=reading_in.abp,
                pap=reading_in.pap,
                etco2=reading_in.etco2,
                awrr=reading_in.awrr,
                source=reading_in.source,
                created_at=self._normalize_timestamp(reading_in.created_at or now),
            )
            for reading_in in readings_in
        ]
        await Reading.insert_many(readings)
        log.info("readings stored", count=len(readings))

        for reading in readings:
            await self._manager.broadcast(self.to_event(reading))
            if self._alerts is not None:
                self._alerts.process_reading(reading.subject_id, reading.to_record())
        return readings

    async def get_history(
        self, subject_id: Optional[str] = None, limit: int = 1000
    ) -> List[Reading]:
        """Newest first, optionally for one subject."""
        query = Reading.find({"subject_id": subject_id}) if subject_id else Reading.find({})
        return await query.sort("-created_at").limit(limit).to_list()

    @staticmethod
    def to_out(reading: Reading) -> ReadingOut:
        return ReadingOut(
            id=str(reading.id) if reading.id is not None else None,
            subject_id=reading.subject_id,
            hr=reading.hr,
            pulse=reading.pulse,
            spo2=reading.spo2,
            abp=reading.abp,
            pap=reading.pap,
            etco2=reading.etco2,
            awrr=reading.awrr,
            source=reading.source,
            created_at=reading.created_at,
        )

    @classmethod
    def to_event(cls, reading: Reading) -> dict[str, Any]:
        payload = cls.to_out(reading).model_dump(by_alias=True, mode="json")
        return {"event": VITAL_UPDATE_EVENT, **payload}

    @staticmethod
    def _normalize_timestamp(value: datetime) -> datetime:
        """Second precision, timezone-aware UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.replace(microsecond=0)


vital_manager = VitalConnectionManager()
reading_service = ReadingService(manager=vital_manager, alerts=alert_service)


def get_reading_service() -> ReadingService:
    return reading_service
