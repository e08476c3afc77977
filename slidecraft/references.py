"""
Reference Images

In-memory collection of the character photos that ground every generation.
"""

import base64
import binascii
import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from slidecraft.core.exceptions import InvalidReferenceError

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)

EXTENSIONS_BY_MIME = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class ReferenceImage:
    """One uploaded reference image; ``data`` is the bare base64 payload."""
    data: str
    mime_type: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_data_url(cls, data_url: str, ref_id: str = None) -> "ReferenceImage":
        """Split a ``data:<mime>;base64,<payload>`` URL into a reference."""
        match = DATA_URL_PATTERN.match(data_url.strip())
        if not match:
            raise InvalidReferenceError("Reference must be a base64 data URL")

        data = match.group("data").strip()
        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidReferenceError(f"Reference payload is not valid base64: {e}")

        mime_type = match.group("mime").lower()
        if not mime_type.startswith("image/"):
            raise InvalidReferenceError(f"Unsupported reference type: {mime_type}")

        if ref_id:
            return cls(data=data, mime_type=mime_type, id=ref_id)
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_bytes(cls, content: bytes, mime_type: str) -> "ReferenceImage":
        """Build a reference from raw file bytes."""
        return cls(data=base64.b64encode(content).decode("ascii"), mime_type=mime_type)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @property
    def extension(self) -> str:
        return EXTENSIONS_BY_MIME.get(self.mime_type, "png")

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class ReferenceCollection:
    """
    Ordered reference images for one session.

    Images are only added or removed between generations; the engine works on
    the tuple returned by ``snapshot()``.
    """

    def __init__(self):
        self._images: Dict[str, ReferenceImage] = {}

    def add(self, image: ReferenceImage) -> ReferenceImage:
        self._images[image.id] = image
        return image

    def add_all(self, images: List[ReferenceImage]) -> List[ReferenceImage]:
        """Add a group of images together (used when loading a saved set)."""
        for image in images:
            self._images[image.id] = image
        return list(images)

    def remove(self, ref_id: str) -> bool:
        """Remove one image by id. Returns False if it was not present."""
        return self._images.pop(ref_id, None) is not None

    def clear(self) -> None:
        self._images.clear()

    def snapshot(self) -> Tuple[ReferenceImage, ...]:
        return tuple(self._images.values())

    def __len__(self) -> int:
        return len(self._images)

    def __bool__(self) -> bool:
        return bool(self._images)

    def __contains__(self, ref_id: str) -> bool:
        return ref_id in self._images
