"""Secondary provider B: an independent vision model served by a local Ollama runtime."""

from collections.abc import Sequence

import httpx
import structlog

from vitalview.modules.extraction.images import ImageFrame
from vitalview.modules.extraction.normalizer import normalize
from vitalview.modules.extraction.providers.base import (
    RecognitionProvider,
    build_vitals_prompt,
    parse_json_answer,
)
from vitalview.modules.extraction.schemas import RegionHint, VitalsRecord, VitalsSource

log = structlog.get_logger()


class LocalVisionProvider(RecognitionProvider):
    name = "secondary-b"
    source = VitalsSource.SECONDARY_B

    def __init__(
        self,
        host: str,
        model: str,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{host.rstrip('/')}/api/generate"
        self._model = model
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def recognize(
        self, frame: ImageFrame, hints: Sequence[RegionHint]
    ) -> VitalsRecord:
        # Region hints are A's concern; B reads the whole frame independently.
        payload = {
            "model": self._model,
            "prompt": build_vitals_prompt(()),
            "images": [frame.base64],
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.1},
        }
        try:
            response = await self._get_client().post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise self.fail(f"transport error: {exc!r}") from exc

        if response.status_code != 200:
            raise self.fail(f"Ollama error {response.status_code}: {response.text[:200]}")

        try:
            answer = response.json().get("response", "")
        except (ValueError, AttributeError) as exc:
            raise self.fail("response body is not a JSON object") from exc
        if not isinstance(answer, str) or not answer.strip():
            raise self.fail("empty answer")

        log.debug("local vision provider answered", model=self._model, chars=len(answer))
        return normalize(parse_json_answer(self.name, answer), self.source)
