import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from vitalview.core.exceptions import DeliveryFailure, SubjectNotFoundError
from vitalview.modules.alerts.config import DEFAULT_RULES
from vitalview.modules.alerts.dispatcher import AlertDispatcher
from vitalview.modules.alerts.engine import AlertService
from vitalview.modules.alerts.manager import AlertStreamManager
from vitalview.modules.alerts.models import (
    PLACEHOLDER_CONTEXT,
    AlertCondition,
    SubjectContext,
    TriggeredAlert,
)
from vitalview.modules.alerts.notifier import StreamNotifier
from vitalview.modules.alerts.tracker import AlertStateTracker
from vitalview.modules.extraction.schemas import VitalField, VitalsRecord

CONTEXT = SubjectContext(name="Ada Lovelace", location="ICU North", bed_label="Bed 4")
HR_HIGH = TriggeredAlert(vital_type=VitalField.HR, value=130.0, condition=AlertCondition.HIGH)
SPO2_LOW = TriggeredAlert(vital_type=VitalField.SPO2, value=85.0, condition=AlertCondition.LOW)


class _RecordingNotifier:
    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self._outcomes = list(outcomes or [])

    async def send(self, recipient: str, subject: str, body: str) -> bool:
        self.sent.append((recipient, subject, body))
        outcome = self._outcomes.pop(0) if self._outcomes else True
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _dispatcher(
    notifier: _RecordingNotifier,
    context: SubjectContext | BaseException = CONTEXT,
    recipients: tuple[str, ...] = ("nurse",),
) -> AlertDispatcher:
    directory = AsyncMock()
    if isinstance(context, BaseException):
        directory.get_subject_context.side_effect = context
    else:
        directory.get_subject_context.return_value = context
    return AlertDispatcher(
        directory=directory, notifier=notifier, rules=DEFAULT_RULES, recipients=recipients
    )


@pytest.mark.asyncio
async def test_dispatch_sends_one_message_per_alert_and_recipient() -> None:
    notifier = _RecordingNotifier()
    dispatcher = _dispatcher(notifier, recipients=("nurse", "doctor"))

    delivered = await dispatcher.dispatch(4, [HR_HIGH, SPO2_LOW])

    assert delivered == 4
    assert [recipient for recipient, _, _ in notifier.sent] == ["nurse", "doctor", "nurse", "doctor"]
    subject, body = notifier.sent[0][1], notifier.sent[0][2]
    assert subject == "[High] Heart Rate alert: Ada Lovelace (Bed 4)"
    assert "Location: ICU North, Bed 4" in body
    assert "Heart Rate is high: 130 bpm" in body
    assert "Normal range: 60-100 bpm" in body
    dispatcher._directory.get_subject_context.assert_awaited_once_with("4")


@pytest.mark.asyncio
async def test_lookup_failure_uses_placeholder_context() -> None:
    notifier = _RecordingNotifier()
    dispatcher = _dispatcher(notifier, context=SubjectNotFoundError("4"))

    delivered = await dispatcher.dispatch("4", [HR_HIGH])

    assert delivered == 1
    assert PLACEHOLDER_CONTEXT.name in notifier.sent[0][1]
    assert PLACEHOLDER_CONTEXT.location in notifier.sent[0][2]


@pytest.mark.asyncio
async def test_one_failed_delivery_does_not_stop_the_rest() -> None:
    notifier = _RecordingNotifier([DeliveryFailure("relay down"), False, True])
    dispatcher = _dispatcher(notifier)

    delivered = await dispatcher.dispatch("4", [HR_HIGH, SPO2_LOW, HR_HIGH])

    assert len(notifier.sent) == 3
    assert delivered == 1


@pytest.mark.asyncio
async def test_empty_alert_list_does_nothing() -> None:
    notifier = _RecordingNotifier()
    dispatcher = _dispatcher(notifier)

    assert await dispatcher.dispatch("4", []) == 0
    assert dispatcher.schedule("4", []) is None
    dispatcher._directory.get_subject_context.assert_not_awaited()


@pytest.mark.asyncio
async def test_schedule_runs_in_background() -> None:
    notifier = _RecordingNotifier()
    dispatcher = _dispatcher(notifier)

    task = dispatcher.schedule("4", [HR_HIGH])

    assert task is not None
    assert notifier.sent == []
    assert await task == 1
    await asyncio.sleep(0)
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_alert_service_evaluates_and_schedules() -> None:
    notifier = _RecordingNotifier()
    dispatcher = _dispatcher(notifier)
    service = AlertService(tracker=AlertStateTracker(rules=DEFAULT_RULES), dispatcher=dispatcher)

    alerts, task = service.process_reading(1, VitalsRecord(HR=45, SpO2=99))

    assert alerts == [TriggeredAlert(vital_type=VitalField.HR, value=45.0, condition=AlertCondition.LOW)]
    assert task is not None
    await dispatcher.drain()
    assert len(notifier.sent) == 1
    assert notifier.sent[0][1].startswith("[Low] Heart Rate alert")

    alerts, task = service.process_reading(1, VitalsRecord(HR=44))
    assert alerts == []
    assert task is None


@pytest.mark.asyncio
async def test_wildcard_stream_sees_one_copy_per_recipient() -> None:
    manager = AlertStreamManager()
    nurse: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    doctor: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    everyone: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    manager.subscribe(nurse, "nurse")
    manager.subscribe(doctor, "doctor")
    manager.subscribe(everyone, "*")
    directory = AsyncMock()
    directory.get_subject_context.return_value = CONTEXT
    dispatcher = AlertDispatcher(
        directory=directory,
        notifier=StreamNotifier(manager),
        rules=DEFAULT_RULES,
        recipients=("nurse", "doctor"),
    )

    delivered = await dispatcher.dispatch("4", [HR_HIGH])

    copies = [everyone.get_nowait() for _ in range(everyone.qsize())]
    assert delivered == 2
    assert [copy["recipient"] for copy in copies] == ["nurse", "doctor"]
    assert len({copy["subject"] for copy in copies}) == 1
    assert (nurse.qsize(), doctor.qsize()) == (1, 1)
