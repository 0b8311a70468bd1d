import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from vitalview.modules.alerts.config import AlertRulesConfig
from vitalview.modules.alerts.directory import SubjectDirectory
from vitalview.modules.alerts.models import (
    PLACEHOLDER_CONTEXT,
    SubjectContext,
    TriggeredAlert,
)
from vitalview.modules.alerts.notifier import Notifier

log = structlog.get_logger()


class AlertDispatcher:
    """Delivers triggered alerts, one message per alert and recipient, at most once."""

    def __init__(
        self,
        directory: SubjectDirectory,
        notifier: Notifier,
        rules: AlertRulesConfig,
        recipients: Sequence[str] = ("nurse",),
    ) -> None:
        self._directory = directory
        self._notifier = notifier
        self._rules = rules
        self._recipients = tuple(recipients)
        self._tasks: set[asyncio.Task[int]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self, subject_id: Any, alerts: Sequence[TriggeredAlert]
    ) -> asyncio.Task[int] | None:
        """Run ``dispatch`` in the background; the caller does not wait for delivery."""
        if not alerts:
            return None
        task = asyncio.create_task(self.dispatch(subject_id, list(alerts)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def dispatch(self, subject_id: Any, alerts: Sequence[TriggeredAlert]) -> int:
        if not alerts:
            return 0
        subject_key = str(subject_id)
        context = await self._resolve_context(subject_key)

        delivered = 0
        for alert in alerts:
            subject, body = self.compose(subject_key, context, alert)
            for recipient in self._recipients:
                if await self._deliver(recipient, subject, body, subject_key, alert):
                    delivered += 1
        return delivered

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def compose(
        self, subject_id: str, context: SubjectContext, alert: TriggeredAlert
    ) -> tuple[str, str]:
        vital_range = self._rules.range_for(alert.vital_type)
        label = vital_range.label if vital_range else alert.vital_type.value
        unit = f" {vital_range.unit}" if vital_range and vital_range.unit else ""
        subject = f"[{alert.condition.value}] {label} alert: {context.name} ({context.bed_label})"
        lines = [
            f"Patient: {context.name} (subject {subject_id})",
            f"Location: {context.location}, {context.bed_label}",
            f"{label} is {alert.condition.value.lower()}: {alert.value:g}{unit}",
        ]
        if vital_range is not None:
            lines.append(f"Normal range: {vital_range.describe()}")
        return subject, "\n".join(lines)

    async def _resolve_context(self, subject_id: str) -> SubjectContext:
        try:
            return await self._directory.get_subject_context(subject_id)
        except Exception as exc:
            log.warning(
                "subject context lookup failed, using placeholder",
                subject_id=subject_id,
                error=str(exc),
            )
            return PLACEHOLDER_CONTEXT

    async def _deliver(
        self,
        recipient: str,
        subject: str,
        body: str,
        subject_id: str,
        alert: TriggeredAlert,
    ) -> bool:
        try:
            sent = await self._notifier.send(recipient, subject, body)
        except Exception as exc:
            log.error(
                "alert delivery failed",
                subject_id=subject_id,
                recipient=recipient,
                vital=alert.vital_type.value,
                error=str(exc),
            )
            return False
        if not sent:
            log.warning(
                "alert not delivered",
                subject_id=subject_id,
                recipient=recipient,
                vital=alert.vital_type.value,
            )
            return False
        log.info(
            "alert delivered",
            subject_id=subject_id,
            recipient=recipient,
            vital=alert.vital_type.value,
            condition=alert.condition.value,
        )
        return True
