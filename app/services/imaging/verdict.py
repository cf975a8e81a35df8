# app/services/imaging/verdict.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        # JPEG 统一落 jpg
        return "jpg" if self is ImageFormat.JPEG else self.value


class RejectReason(str, Enum):
    """
    拒绝原因。value 即对外的 reasonCode。
    """
    NO_FILE = "no_file_uploaded"
    TOO_SMALL = "file_too_small"
    TOO_LARGE = "file_too_large"
    UNSUPPORTED_MIME_TYPE = "invalid_mime_type"
    UNSUPPORTED_EXTENSION = "invalid_extension"
    SIGNATURE_MISMATCH = "invalid_signature"
    UNREADABLE_DIMENSIONS = "cannot_read_dimensions"
    DIMENSIONS_TOO_SMALL = "dimensions_too_small"
    DIMENSIONS_TOO_LARGE = "dimensions_too_large"


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class UploadCandidate:
    data: Optional[bytes]
    declared_mime_type: str
    declared_file_name: Optional[str] = None


@dataclass(frozen=True)
class Accepted:
    mime_type: str
    extension: str
    size_bytes: int
    dimensions: Dimensions


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    message: str

    @property
    def reason_code(self) -> str:
        return self.reason.value


Verdict = Union[Accepted, Rejected]
