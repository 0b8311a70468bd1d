import math
import threading
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from vitalview.modules.alerts.config import AlertRulesConfig, VitalRangeConfig
from vitalview.modules.alerts.models import AlertCondition, AlertStateKey, TriggeredAlert
from vitalview.modules.alerts.store import AlertStateStore, LRUAlertStateStore
from vitalview.modules.extraction.schemas import VitalField, VitalsRecord

log = structlog.get_logger()


class AlertStateTracker:
    """
    Edge-triggered range checks.

    Remembers the last condition per (subject, vital) and reports a vital only when
    its condition changes into Low or High. Missing readings leave the remembered
    condition untouched. Evaluation is serialised so interleaved readings for the
    same subject cannot both observe the old condition.
    """

    def __init__(
        self, rules: AlertRulesConfig, store: AlertStateStore | None = None
    ) -> None:
        self._rules = rules
        self._store = store if store is not None else LRUAlertStateStore()
        self._lock = threading.Lock()

    @property
    def rules(self) -> AlertRulesConfig:
        return self._rules

    @staticmethod
    def classify(value: float, vital_range: VitalRangeConfig) -> AlertCondition:
        if value < vital_range.low:
            return AlertCondition.LOW
        if value > vital_range.high:
            return AlertCondition.HIGH
        return AlertCondition.NORMAL

    def evaluate(
        self, subject_id: Any, vitals: VitalsRecord | Mapping[str, Any]
    ) -> list[TriggeredAlert]:
        subject_key = str(subject_id)
        values = vitals.vitals() if isinstance(vitals, VitalsRecord) else vitals
        triggered: list[TriggeredAlert] = []
        unreadable: list[tuple[VitalField, Any]] = []

        with self._lock:
            for field, vital_range in self._rules.ranges.items():
                raw = values.get(field.value)
                if raw is None:
                    continue
                value = self._as_float(raw)
                if value is None:
                    unreadable.append((field, raw))
                    continue

                condition = self.classify(value, vital_range)
                key = AlertStateKey(subject_id=subject_key, vital_type=field)
                previous = self._store.get(key) or AlertCondition.NORMAL
                self._store.set(key, condition)

                if self._should_emit(previous, condition):
                    triggered.append(
                        TriggeredAlert(vital_type=field, value=value, condition=condition)
                    )

        for field, raw in unreadable:
            log.warning(
                "non-numeric vital skipped", subject_id=subject_key, vital=field.value, value=raw
            )
        if triggered:
            log.info(
                "vital alerts triggered",
                subject_id=subject_key,
                vitals=[alert.vital_type.value for alert in triggered],
            )
        return triggered

    def current_condition(self, subject_id: Any, field: VitalField) -> AlertCondition | None:
        with self._lock:
            return self._store.get(AlertStateKey(subject_id=str(subject_id), vital_type=field))

    def forget_subject(self, subject_id: Any) -> int:
        with self._lock:
            return self._store.forget_subject(str(subject_id))

    def retain_subjects(self, subject_ids: Iterable[Any]) -> int:
        with self._lock:
            return self._store.retain_subjects(str(subject_id) for subject_id in subject_ids)

    def _should_emit(self, previous: AlertCondition, current: AlertCondition) -> bool:
        if previous is current:
            return False
        if current is AlertCondition.NORMAL:
            return self._rules.alert_on_recovery
        return True

    @staticmethod
    def _as_float(value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number):
            return None
        return number
