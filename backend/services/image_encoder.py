import base64
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

_EXTENSION_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class EncodedImage:
    base64_data: str
    mime_type: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64_data)


def resolve_mime_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Prefer the declared content type, then the file extension."""
    if content_type:
        return content_type
    extension = PurePosixPath(filename or "").suffix.lstrip(".").lower()
    return _EXTENSION_MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def encode_image(data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> EncodedImage:
    # Content is passed through untouched; the model rejects bad images itself.
    return EncodedImage(
        base64_data=base64.b64encode(data).decode("ascii"),
        mime_type=resolve_mime_type(filename, content_type),
    )
