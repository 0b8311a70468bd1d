from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, AsyncGenerator
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from vitalview.core.config import settings
from vitalview.main import app
from vitalview.modules.alerts.service import alert_dispatcher, alert_manager, alert_tracker
from vitalview.modules.patients.models import Patient
from vitalview.modules.readings.models import Reading
from vitalview.modules.readings.service import vital_manager


def _install_document_settings() -> None:
    # Prevent Beanie from requiring real collection initialization
    dummy_settings = SimpleNamespace(
        motor_collection=None, pymongo_collection=None, use_state_management=False
    )
    for document in (Reading, Patient):
        if getattr(document, "_document_settings", None) is None:
            document._document_settings = dummy_settings  # type: ignore[attr-defined]


def _matches(document: object, filters: dict[str, Any]) -> bool:
    return all(getattr(document, field, None) == value for field, value in filters.items())


def _patch_reading_model(monkeypatch: pytest.MonkeyPatch, store: dict[str, Any]) -> None:
    def _ensure_id(reading: Reading) -> None:
        if getattr(reading, "id", None) is None:
            reading.id = str(uuid.uuid4())

    async def _insert(self: Reading) -> Reading:
        _ensure_id(self)
        if getattr(self, "created_at", None) is None:
            self.created_at = datetime.now(timezone.utc)
        store["readings"].append(self)
        return self

    async def _insert_many(readings: list[Reading]) -> None:
        for reading in readings:
            await _insert(reading)

    class _FakeQuery:
        def __init__(self, filters: dict[str, Any] | None = None) -> None:
            self.filters = filters or {}
            self._sort_field: str | None = None
            self._descending = False
            self._limit: int | None = None

        def sort(self, sort_spec: str) -> "_FakeQuery":
            self._descending = sort_spec.startswith("-")
            self._sort_field = sort_spec[1:] if self._descending else sort_spec
            return self

        def limit(self, count: int) -> "_FakeQuery":
            self._limit = count
            return self

        async def to_list(self) -> list[Reading]:
            items = [r for r in store["readings"] if _matches(r, self.filters)]
            if self._sort_field:
                items.sort(
                    key=lambda r: getattr(r, self._sort_field),
                    reverse=self._descending,
                )
            if self._limit is not None:
                items = items[: self._limit]
            return items

    def _find(filters: dict[str, Any] | None = None) -> _FakeQuery:
        return _FakeQuery(dict(filters or {}))

    monkeypatch.setattr(Reading, "insert", _insert, raising=False)
    monkeypatch.setattr(Reading, "insert_many", staticmethod(_insert_many), raising=False)
    monkeypatch.setattr(Reading, "find", staticmethod(_find), raising=False)


def _patch_patient_model(monkeypatch: pytest.MonkeyPatch, store: dict[str, Any]) -> None:
    async def _insert(self: Patient) -> Patient:
        if getattr(self, "id", None) is None:
            self.id = str(uuid.uuid4())
        store["patients"][self.subject_id] = self
        return self

    async def _find_one(filters: dict[str, Any] | None = None) -> Patient | None:
        for patient in store["patients"].values():
            if _matches(patient, filters or {}):
                return patient
        return None

    monkeypatch.setattr(Patient, "insert", _insert, raising=False)
    monkeypatch.setattr(Patient, "find_one", staticmethod(_find_one), raising=False)


@pytest.fixture
async def db(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[dict[str, Any], None]:
    """
    Provide an in-memory stand-in for Mongo to keep tests hermetic without a running DB.
    """
    settings.MONGODB_DB_NAME = "test_vitalview_db"
    store: dict[str, Any] = {"readings": [], "patients": {}}

    _install_document_settings()
    _patch_reading_model(monkeypatch, store)
    _patch_patient_model(monkeypatch, store)

    # Stub init_db to avoid real connection attempts if invoked elsewhere
    async def _init_db_stub() -> object:
        return SimpleNamespace(close=lambda: None)

    monkeypatch.setattr("vitalview.core.db.init_db", _init_db_stub, raising=False)

    yield store

    store["readings"].clear()
    store["patients"].clear()


@pytest.fixture
async def client(db: dict[str, Any]) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await alert_dispatcher.drain()


@pytest.fixture
async def create_patient_func(db: dict[str, Any]) -> Any:
    async def _create_patient(subject_id: str = "1", **kwargs: Any) -> Patient:
        patient_data = {
            "subject_id": subject_id,
            "name": f"Patient {subject_id}",
            "bed_label": f"Bed {subject_id}",
            "icu_name": "ICU A",
        }
        patient_data.update(kwargs)  # allow override

        patient = Patient(**patient_data)
        await patient.insert()
        return patient

    return _create_patient


@pytest.fixture(autouse=True)
def reset_realtime_state() -> None:
    """
    Ensure connection registries and alert state start empty for each test.
    """
    vital_manager.connections.clear()
    alert_tracker.retain_subjects([])
    yield
    vital_manager.connections.clear()
    alert_tracker.retain_subjects([])
    for queues in list(alert_manager._queues.values()):
        for queue in list(queues):
            alert_manager.unsubscribe(queue)
