import asyncio
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import WebSocketDisconnect, status
from httpx import AsyncClient

from vitalview.modules.alerts.models import AlertCondition
from vitalview.modules.alerts.service import alert_manager, alert_tracker
from vitalview.modules.extraction.schemas import VitalField
from vitalview.modules.readings import router as readings_router


@pytest.mark.asyncio
async def test_post_single_reading(client: AsyncClient, db: dict[str, Any]) -> None:
    response = await client.post("/api/v1/vitals", json={"subjectId": "1", "hr": 72, "spo2": 98})

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {"success": True, "count": 1}
    assert db["readings"][0].spo2 == 98


@pytest.mark.asyncio
async def test_post_reading_list(client: AsyncClient, db: dict[str, Any]) -> None:
    response = await client.post(
        "/api/v1/vitals",
        json=[{"subjectId": "1", "hr": 72}, {"subject_id": "2", "pulse": 400}],
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["count"] == 2
    assert db["readings"][1].pulse is None


@pytest.mark.asyncio
async def test_post_empty_list(client: AsyncClient, db: dict[str, Any]) -> None:
    response = await client.post("/api/v1/vitals", json=[])

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {"success": True, "count": 0}


@pytest.mark.asyncio
async def test_post_reading_drives_alerts_to_the_stream(
    client: AsyncClient, create_patient_func: Any
) -> None:
    await create_patient_func("1", name="Ada Lovelace", bed_label="Bed 4")
    queue: asyncio.Queue = asyncio.Queue()
    alert_manager.subscribe(queue, "*")

    response = await client.post("/api/v1/vitals", json={"subjectId": 1, "hr": 45, "spo2": 99})
    assert response.status_code == status.HTTP_201_CREATED

    message = await asyncio.wait_for(queue.get(), timeout=1.0)
    assert message["subject"] == "[Low] Heart Rate alert: Ada Lovelace (Bed 4)"
    assert queue.empty()
    assert alert_tracker.current_condition("1", VitalField.HR) is AlertCondition.LOW
    assert alert_tracker.current_condition("1", VitalField.SPO2) is AlertCondition.NORMAL


@pytest.mark.asyncio
async def test_get_history(client: AsyncClient) -> None:
    await client.post(
        "/api/v1/vitals",
        json=[
            {"subjectId": "1", "hr": 60, "createdAt": "2024-01-01T00:00:00Z"},
            {"subjectId": "2", "hr": 65, "createdAt": "2024-01-01T00:01:00Z"},
            {"subjectId": "1", "hr": 70, "createdAt": "2024-01-01T00:02:00Z"},
        ],
    )

    everyone = await client.get("/api/v1/vitals")
    subject_one = await client.get("/api/v1/vitals", params={"subjectId": "1", "limit": 1})

    assert [item["hr"] for item in everyone.json()] == [70, 65, 60]
    assert subject_one.json()[0]["hr"] == 70
    assert len(subject_one.json()) == 1
    assert subject_one.json()[0]["subjectId"] == "1"


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 5001])
async def test_get_history_limit_bounds(client: AsyncClient, limit: int) -> None:
    response = await client.get("/api/v1/vitals", params={"limit": limit})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_websocket_vitals_connects_and_disconnects(monkeypatch: pytest.MonkeyPatch) -> None:
    connect = AsyncMock()
    disconnect_calls = []

    monkeypatch.setattr(readings_router.vital_manager, "connect", connect)
    monkeypatch.setattr(readings_router.vital_manager, "disconnect", disconnect_calls.append)

    websocket = SimpleNamespace(receive_text=AsyncMock(side_effect=WebSocketDisconnect()))

    await readings_router.websocket_vitals(websocket)

    connect.assert_awaited_once_with(websocket)
    assert disconnect_calls == [websocket]


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.json() == {"status": "ok"}
