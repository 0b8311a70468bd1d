"""
Secondary provider A: pattern-based text recognition.

Tesseract reads either one small window per region hint (digits only) or, with
no hints, the whole frame; regular expressions then turn the text into values.
OCR is CPU-bound and synchronous, so it runs in a worker thread.
"""

import asyncio
import re
from collections.abc import Sequence

import pytesseract
import structlog
from PIL import Image, ImageOps, ImageStat, UnidentifiedImageError

from vitalview.modules.extraction.images import ImageFrame
from vitalview.modules.extraction.normalizer import canonical_field, normalize
from vitalview.modules.extraction.providers.base import RecognitionProvider
from vitalview.modules.extraction.schemas import (
    PRESSURE_FIELDS,
    RegionHint,
    VitalField,
    VitalsRecord,
    VitalsSource,
)

log = structlog.get_logger()

_PRESSURE_TEXT = r"\d{2,3}\s*/\s*\d{1,3}(?:\s*/\s*\d{1,3}|\s*\(\s*\d{1,3}\s*\))?"
_NUMBER_TEXT = r"\d{1,3}(?:\.\d)?"

PRESSURE_PATTERN = re.compile(_PRESSURE_TEXT)
NUMBER_PATTERN = re.compile(_NUMBER_TEXT)
LABELLED_VALUE_PATTERN = re.compile(
    r"\b(?P<label>HR|Pulse|PR|SpO2|ABP|BP|PAP|EtCO2|CO2|awRR|RR)\b[^\d\n]{0,4}"
    rf"(?P<value>{_PRESSURE_TEXT}|{_NUMBER_TEXT})",
    re.IGNORECASE,
)

# Single text line, digits and pressure punctuation only
REGION_CONFIG = r"--psm 7 -c tessedit_char_whitelist=0123456789/()."
FRAME_CONFIG = r"--psm 11"

# Upscale factor for region crops; Tesseract struggles below ~30px glyph height.
_CROP_SCALE = 3


def read_region_value(field: VitalField, text: str) -> str | None:
    """Pick the value for ``field`` out of the OCR text of its region."""
    pattern = PRESSURE_PATTERN if field in PRESSURE_FIELDS else NUMBER_PATTERN
    match = pattern.search(text)
    return match.group(0) if match else None


def read_labelled_values(text: str) -> dict[str, str]:
    """Scan full-frame OCR text for ``LABEL value`` pairs; first occurrence wins."""
    found: dict[str, str] = {}
    for match in LABELLED_VALUE_PATTERN.finditer(text):
        field = canonical_field(match.group("label"))
        if field is None or field.value in found:
            continue
        value = match.group("value")
        if field in PRESSURE_FIELDS and "/" not in value:
            continue
        if field not in PRESSURE_FIELDS and "/" in value:
            continue
        found[field.value] = value
    return found


def region_box(
    hint: RegionHint, size: tuple[int, int], window_width: float, window_height: float
) -> tuple[int, int, int, int]:
    """Pixel box of the window centred on a hint, clamped to the frame."""
    width, height = size
    left = max(0, int((hint.x - window_width / 2) * width))
    top = max(0, int((hint.y - window_height / 2) * height))
    right = min(width, int((hint.x + window_width / 2) * width))
    bottom = min(height, int((hint.y + window_height / 2) * height))
    return left, top, max(right, left + 1), max(bottom, top + 1)


def prepare_for_ocr(image: Image.Image, scale: int = 1) -> Image.Image:
    """Grayscale, dark-on-light and stretched contrast; monitors draw light digits on black."""
    gray = ImageOps.grayscale(image)
    if ImageStat.Stat(gray).mean[0] < 128:
        gray = ImageOps.invert(gray)
    gray = ImageOps.autocontrast(gray)
    if scale > 1:
        gray = gray.resize((gray.width * scale, gray.height * scale), Image.LANCZOS)
    return gray


class TesseractPatternProvider(RecognitionProvider):
    name = "secondary-a"
    source = VitalsSource.SECONDARY_A

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        window_width: float = 0.2,
        window_height: float = 0.12,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self._window_width = window_width
        self._window_height = window_height

    async def recognize(
        self, frame: ImageFrame, hints: Sequence[RegionHint]
    ) -> VitalsRecord:
        return await asyncio.to_thread(self._recognize_sync, frame, tuple(hints))

    def _recognize_sync(
        self, frame: ImageFrame, hints: tuple[RegionHint, ...]
    ) -> VitalsRecord:
        try:
            image = frame.open()
            raw = self._read_regions(image, hints) if hints else self._read_frame(image)
        # TesseractNotFoundError subclasses OSError, so it must be matched first
        except pytesseract.TesseractNotFoundError as exc:
            raise self.fail("tesseract binary not found") from exc
        except pytesseract.TesseractError as exc:
            raise self.fail(f"tesseract error: {exc.message}") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise self.fail(f"cannot decode frame: {exc}") from exc
        log.debug("ocr pattern provider read", fields=sorted(raw))
        return normalize(raw, self.source)

    def _read_regions(
        self, image: Image.Image, hints: tuple[RegionHint, ...]
    ) -> dict[str, str]:
        raw: dict[str, str] = {}
        for hint in hints:
            field = canonical_field(hint.label)
            if field is None:
                log.debug("ocr region label not recognised", label=hint.label)
                continue
            if field.value in raw:
                continue
            box = region_box(hint, image.size, self._window_width, self._window_height)
            crop = prepare_for_ocr(image.crop(box), scale=_CROP_SCALE)
            text = pytesseract.image_to_string(crop, config=REGION_CONFIG)
            value = read_region_value(field, text)
            if value is not None:
                raw[field.value] = value
        return raw

    def _read_frame(self, image: Image.Image) -> dict[str, str]:
        text = pytesseract.image_to_string(prepare_for_ocr(image), config=FRAME_CONFIG)
        return read_labelled_values(text)
