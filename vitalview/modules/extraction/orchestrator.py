"""
Extraction cascade.

1. Ask the primary provider once. Any success is authoritative.
2. Otherwise run secondary A and B concurrently and let each settle on its own.
3. Prefer the more complete of the two answers; B wins ties.

Provider failures are logged and absorbed; the only error a caller sees is
unusable input.
"""

import asyncio
from collections.abc import Sequence

import structlog

from vitalview.core.exceptions import InputError
from vitalview.modules.extraction.images import ImageFrame
from vitalview.modules.extraction.providers.base import RecognitionProvider
from vitalview.modules.extraction.schemas import (
    ExtractionResult,
    RegionHint,
    VitalsRecord,
    VitalsSource,
)
from vitalview.modules.extraction.scoring import completeness_score

log = structlog.get_logger()


def select_secondary(
    result_a: VitalsRecord | None, result_b: VitalsRecord | None
) -> VitalsRecord:
    """
    Choose between two settled fallback answers. ``None`` means the provider failed,
    which is different from a successful answer with every field illegible.
    """
    if result_a is None and result_b is None:
        return VitalsRecord.empty()
    if result_a is None:
        return result_b
    if result_b is None:
        return result_a
    if completeness_score(result_b) >= completeness_score(result_a):
        return result_b
    return result_a


class ExtractionOrchestrator:
    def __init__(
        self,
        primary: RecognitionProvider,
        secondary_a: RecognitionProvider,
        secondary_b: RecognitionProvider,
    ) -> None:
        self._primary = primary
        self._secondary_a = secondary_a
        self._secondary_b = secondary_b

    @property
    def providers(self) -> tuple[RecognitionProvider, ...]:
        return (self._primary, self._secondary_a, self._secondary_b)

    async def extract(
        self,
        image: str | bytes | None,
        region_hints: Sequence[RegionHint] = (),
    ) -> ExtractionResult:
        """Read one frame. Raises ``InputError`` only; otherwise always returns a record."""
        frame = ImageFrame.from_payload(image)
        hints = tuple(region_hints)

        primary = await self._attempt(self._primary, frame, hints)
        if primary is not None:
            return self._result(primary)

        settled = await asyncio.gather(
            self._secondary_a.recognize(frame, hints),
            self._secondary_b.recognize(frame, hints),
            return_exceptions=True,
        )
        result_a = self._settled(self._secondary_a, settled[0])
        result_b = self._settled(self._secondary_b, settled[1])

        chosen = select_secondary(result_a, result_b)
        if chosen.source is VitalsSource.NONE:
            log.warning("all recognition providers failed")
        return self._result(chosen)

    async def extract_batch(
        self,
        frames: Sequence[str | bytes | None],
        region_hints: Sequence[RegionHint] = (),
    ) -> list[ExtractionResult]:
        """Read frames one after another; an unusable frame yields an empty record, not an error."""
        results: list[ExtractionResult] = []
        for index, frame in enumerate(frames):
            try:
                results.append(await self.extract(frame, region_hints))
            except InputError as exc:
                log.warning("batch frame skipped", frame=index, error=str(exc))
                results.append(self._result(VitalsRecord.empty()))
        return results

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.aclose()

    @staticmethod
    async def _attempt(
        provider: RecognitionProvider, frame: ImageFrame, hints: tuple[RegionHint, ...]
    ) -> VitalsRecord | None:
        try:
            record = await provider.recognize(frame, hints)
        except Exception as exc:
            log.warning("recognition provider failed", provider=provider.name, error=str(exc))
            return None
        return record.with_source(provider.source)

    @staticmethod
    def _settled(
        provider: RecognitionProvider, outcome: VitalsRecord | BaseException
    ) -> VitalsRecord | None:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            log.warning("recognition provider failed", provider=provider.name, error=str(outcome))
            return None
        return outcome.with_source(provider.source)

    @staticmethod
    def _result(record: VitalsRecord) -> ExtractionResult:
        return ExtractionResult(vitals=record, source=record.source)
