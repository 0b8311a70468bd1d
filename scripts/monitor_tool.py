#!/usr/bin/env python3
"""
Command-line helper for exercising a running VitalView API.

Usage:
    # Read a monitor photo (optionally with region hints) and store the result
    python scripts/monitor_tool.py extract monitor.jpg --subject-id 1 --roi HR:0.82:0.12

    # Store a hand-written reading that may trigger an alert
    python scripts/monitor_tool.py send-reading --subject-id 1 --hr 45 --spo2 99

    # Follow alert notifications for a recipient
    python scripts/monitor_tool.py listen --recipient nurse
"""

import asyncio
import base64
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import httpx
import typer

app = typer.Typer()

BASE_URL = "http://localhost:8000"


def _parse_roi(raw: str) -> dict:
    label, x, y = raw.rsplit(":", 2)
    return {"label": label, "x": float(x), "y": float(y)}


@app.command()
def extract(
    image: Path = typer.Argument(..., exists=True, readable=True, help="Monitor photo"),
    subject_id: Optional[str] = typer.Option(None, help="Store the reading under this subject"),
    roi: List[str] = typer.Option([], help="Region hint as LABEL:X:Y (fractions of the frame)"),
    base_url: str = typer.Option(BASE_URL, help="API base URL"),
):
    """Send a frame through the extraction pipeline."""
    asyncio.run(_extract(image, subject_id, [_parse_roi(item) for item in roi], base_url))


async def _extract(image: Path, subject_id: str | None, rois: list[dict], base_url: str) -> None:
    payload = {"imageBase64": base64.b64encode(image.read_bytes()).decode("ascii"), "rois": rois}
    async with httpx.AsyncClient(base_url=base_url, timeout=120.0) as client:
        response = await client.post("/api/v1/extract-vitals", json=payload)
        if response.is_error:
            typer.echo(f"❌ Extraction failed: {response.status_code} {response.text}", err=True)
            raise typer.Exit(1)

        result = response.json()
        typer.echo(f"📷 Source: {result['source']}")
        for key, value in result["vitals"].items():
            typer.echo(f"   {key:<6} {value if value is not None else '--'}")

        if subject_id is None:
            return
        reading = {
            "subjectId": subject_id,
            "source": result["source"],
            **{key.lower(): value for key, value in result["vitals"].items()},
        }
        stored = await client.post("/api/v1/vitals", json=reading)
        typer.echo(f"💾 Stored: {stored.json()}")


@app.command()
def send_reading(
    subject_id: str = typer.Option(..., help="Subject the reading belongs to"),
    hr: Optional[float] = typer.Option(None),
    pulse: Optional[float] = typer.Option(None),
    spo2: Optional[float] = typer.Option(None),
    etco2: Optional[float] = typer.Option(None),
    awrr: Optional[float] = typer.Option(None),
    abp: Optional[str] = typer.Option(None, help="sys/dia or sys/dia/mean"),
    base_url: str = typer.Option(BASE_URL, help="API base URL"),
):
    """Store one reading."""
    reading = {
        "subjectId": subject_id,
        "hr": hr,
        "pulse": pulse,
        "spo2": spo2,
        "etco2": etco2,
        "awrr": awrr,
        "abp": abp,
    }
    response = httpx.post(f"{base_url}/api/v1/vitals", json=reading)
    if response.is_error:
        typer.echo(f"❌ Failed: {response.status_code} {response.text}", err=True)
        raise typer.Exit(1)
    typer.echo(f"✅ {response.json()}")


@app.command()
def listen(
    recipient: str = typer.Option("*", help="Recipient to follow ('*' for everyone)"),
    base_url: str = typer.Option(BASE_URL, help="API base URL"),
):
    """Follow the SSE alert stream."""
    asyncio.run(_listen(recipient, base_url))


async def _listen(recipient: str, base_url: str) -> None:
    url = f"{base_url}/api/v1/alerts/stream"
    typer.echo(f"📡 Connecting to {url} as {recipient} (Ctrl+C to stop)\n")
    async with httpx.AsyncClient(timeout=None) as client:
        async with client.stream("GET", url, params={"recipient": recipient}) as response:
            if response.status_code != 200:
                typer.echo(f"❌ Connection failed: {response.status_code}", err=True)
                return
            async for line in response.aiter_lines():
                if line.startswith(":"):
                    typer.echo("💓 keepalive")
                elif line.startswith("data:"):
                    alert = json.loads(line[5:].strip())
                    typer.echo(f"🚨 {datetime.now().isoformat()} → {alert.get('recipient')}")
                    typer.echo(alert.get("subject", ""))
                    typer.echo(alert.get("body", ""))
                    typer.echo("=" * 60)


if __name__ == "__main__":
    app()
