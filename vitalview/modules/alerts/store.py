from collections import OrderedDict
from collections.abc import Iterable
from typing import Protocol

from vitalview.modules.alerts.models import AlertCondition, AlertStateKey


class AlertStateStore(Protocol):
    def get(self, key: AlertStateKey) -> AlertCondition | None: ...

    def set(self, key: AlertStateKey, condition: AlertCondition) -> None: ...

    def forget_subject(self, subject_id: str) -> int: ...

    def retain_subjects(self, subject_ids: Iterable[str]) -> int: ...


class LRUAlertStateStore:
    """
    In-memory last-known condition per (subject, vital).

    Bounded by ``capacity``; the least recently touched key is dropped first, so a
    subject that stops reporting eventually falls out and starts fresh.
    """

    def __init__(self, capacity: int = 10_000) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._states: OrderedDict[AlertStateKey, AlertCondition] = OrderedDict()

    def __len__(self) -> int:
        return len(self._states)

    def get(self, key: AlertStateKey) -> AlertCondition | None:
        condition = self._states.get(key)
        if condition is not None:
            self._states.move_to_end(key)
        return condition

    def set(self, key: AlertStateKey, condition: AlertCondition) -> None:
        self._states[key] = condition
        self._states.move_to_end(key)
        while len(self._states) > self._capacity:
            self._states.popitem(last=False)

    def forget_subject(self, subject_id: str) -> int:
        stale = [key for key in self._states if key.subject_id == subject_id]
        for key in stale:
            del self._states[key]
        return len(stale)

    def retain_subjects(self, subject_ids: Iterable[str]) -> int:
        keep = {str(subject_id) for subject_id in subject_ids}
        stale = [key for key in self._states if key.subject_id not in keep]
        for key in stale:
            del self._states[key]
        return len(stale)
