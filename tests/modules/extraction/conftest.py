"""Fixtures for extraction module tests."""

import asyncio
import base64
import io
from collections.abc import Sequence
from typing import Any

import pytest
from PIL import Image

from vitalview.modules.extraction.images import ImageFrame
from vitalview.modules.extraction.providers.base import RecognitionProvider
from vitalview.modules.extraction.schemas import RegionHint, VitalsRecord, VitalsSource


class FakeProvider(RecognitionProvider):
    """Scripted provider: returns ``result`` (or raises it) after ``delay`` seconds."""

    def __init__(
        self,
        name: str,
        source: VitalsSource,
        result: VitalsRecord | BaseException,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.source = source
        self._result = result
        self._delay = delay
        self.calls: list[tuple[ImageFrame, tuple[RegionHint, ...]]] = []
        self.closed = False

    async def recognize(
        self, frame: ImageFrame, hints: Sequence[RegionHint]
    ) -> VitalsRecord:
        self.calls.append((frame, tuple(hints)))
        if self._delay:
            await asyncio.sleep(self._delay)
        if isinstance(self._result, BaseException):
            raise self._result
        return self._result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color=(0, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_base64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def make_provider() -> Any:
    def _make_provider(
        source: VitalsSource, result: VitalsRecord | BaseException, delay: float = 0.0
    ) -> FakeProvider:
        return FakeProvider(source.value, source, result, delay)

    return _make_provider
