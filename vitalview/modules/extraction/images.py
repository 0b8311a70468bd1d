import base64
import binascii
import io
import re
from dataclasses import dataclass
from functools import cached_property

from PIL import Image, ImageOps

from vitalview.core.exceptions import InvalidImageError, MissingImageError

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


@dataclass(frozen=True)
class ImageFrame:
    """A decoded monitor frame shared read-only by every provider in one extraction."""

    data: bytes

    @classmethod
    def from_payload(cls, payload: str | bytes | None) -> "ImageFrame":
        """Accept raw bytes, plain base64 or a ``data:image/...;base64,`` URL."""
        if payload is None or len(payload) == 0:
            raise MissingImageError()
        if isinstance(payload, bytes):
            return cls(data=payload)

        encoded = _DATA_URL_PREFIX.sub("", payload.strip())
        if not encoded:
            raise MissingImageError()
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImageError(str(exc)) from exc
        return cls(data=data)

    @cached_property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def open(self) -> Image.Image:
        """Decode with EXIF orientation applied (phone cameras store rotated pixels)."""
        image = Image.open(io.BytesIO(self.data))
        image = ImageOps.exif_transpose(image)
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        return image
