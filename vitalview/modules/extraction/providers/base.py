import json
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from vitalview.core.exceptions import ProviderFailure
from vitalview.modules.extraction.images import ImageFrame
from vitalview.modules.extraction.schemas import RegionHint, VitalsRecord, VitalsSource

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_PROMPT_HEADER = (
    "You are analyzing a medical patient monitor display. "
    "Extract the exact numerical values for the following vital signs"
)

_PROMPT_RULES = """CRITICAL INSTRUCTIONS:
- Return ONLY valid JSON, no explanations or markdown.
- Extract ONLY the numeric values you can clearly see.
- For blood pressure readings (ABP, PAP), return as "systolic/diastolic/mean" format (e.g., "120/80/93").
- If a value is not clearly visible, use null.

Return JSON format:
{
  "HR": number or null,
  "Pulse": number or null,
  "SpO2": number or null,
  "ABP": "sys/dia/mean" or null,
  "PAP": "sys/dia/mean" or null,
  "EtCO2": number or null,
  "awRR": number or null
}"""


class RecognitionProvider(ABC):
    """
    One way of reading vitals off a monitor frame.

    Implementations return a normalized record tagged with their ``source`` and
    raise ``ProviderFailure`` for anything that prevents a usable answer
    (transport errors, non-2xx responses, unparsable output, missing engine).
    """

    name: str
    source: VitalsSource

    @abstractmethod
    async def recognize(
        self, frame: ImageFrame, hints: Sequence[RegionHint]
    ) -> VitalsRecord:
        ...

    async def aclose(self) -> None:
        """Release any transport held by the provider."""

    def fail(self, reason: str) -> ProviderFailure:
        return ProviderFailure(self.name, reason)


def build_vitals_prompt(hints: Sequence[RegionHint]) -> str:
    """Task description embedding the expected field set and any region hints."""
    if hints:
        locations = "\n".join(hint.describe() for hint in hints)
        return f"{_PROMPT_HEADER} from their specific screen locations:\n\n{locations}\n\n{_PROMPT_RULES}"
    return f"{_PROMPT_HEADER} shown on the screen.\n\n{_PROMPT_RULES}"


def parse_json_answer(provider: str, text: str) -> dict[str, Any]:
    """Pull the JSON object out of a free-form model answer (models like to wrap it in prose)."""
    match = _JSON_OBJECT.search(text)
    candidate = match.group(0) if match else text
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ProviderFailure(provider, f"answer is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ProviderFailure(provider, "answer is not a JSON object")
    return data
