import asyncio
from typing import Any

from vitalview.modules.alerts.dispatcher import AlertDispatcher
from vitalview.modules.alerts.models import TriggeredAlert
from vitalview.modules.alerts.tracker import AlertStateTracker
from vitalview.modules.extraction.schemas import VitalsRecord


class AlertService:
    """Evaluates a committed reading and hands any transitions to the dispatcher."""

    def __init__(self, tracker: AlertStateTracker, dispatcher: AlertDispatcher) -> None:
        self._tracker = tracker
        self._dispatcher = dispatcher

    @property
    def tracker(self) -> AlertStateTracker:
        return self._tracker

    @property
    def dispatcher(self) -> AlertDispatcher:
        return self._dispatcher

    def process_reading(
        self, subject_id: Any, reading: VitalsRecord
    ) -> tuple[list[TriggeredAlert], asyncio.Task[int] | None]:
        alerts = self._tracker.evaluate(subject_id, reading)
        return alerts, self._dispatcher.schedule(subject_id, alerts)
