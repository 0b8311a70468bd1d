"""
Primary provider: a hosted vision-language model behind the Hugging Face
inference API. Called once per frame; the orchestrator handles fallback, so
there is no retry here.
"""

from collections.abc import Sequence
from typing import Any

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


class HostedVisionProvider(RecognitionProvider):
    name = "primary-vlm"
    source = VitalsSource.PRIMARY

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str,
        max_new_tokens: int = 500,
        temperature: float = 0.1,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = f"{base_url.rstrip('/')}/{model}"
        self._parameters = {"max_new_tokens": max_new_tokens, "temperature": temperature}
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
        if not self._api_key:
            raise self.fail("HF_API_KEY is not set")

        payload = {
            "inputs": {"image": frame.base64, "prompt": build_vitals_prompt(hints)},
            "parameters": self._parameters,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._get_client().post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise self.fail(f"transport error: {exc!r}") from exc

        if response.is_error:
            raise self.fail(f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as exc:
            raise self.fail("response body is not JSON") from exc

        text = generated_text(body)
        if text is None:
            raise self.fail(f"unexpected response shape: {type(body).__name__}")

        log.debug("primary provider answered", model=self._model, chars=len(text))
        return normalize(parse_json_answer(self.name, text), self.source)


def generated_text(body: Any) -> str | None:
    """Inference API answers come as ``[{generated_text}]``, ``{generated_text}`` or a bare string."""
    if isinstance(body, str):
        return body
    if isinstance(body, list) and body and isinstance(body[0], dict):
        text = body[0].get("generated_text")
        return text if isinstance(text, str) else None
    if isinstance(body, dict):
        text = body.get("generated_text")
        return text if isinstance(text, str) else None
    return None
