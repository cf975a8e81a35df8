# app/services/imaging/policy.py
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from services.imaging.dimensions import extract_dimensions
from services.imaging.signatures import format_for_mime, matches_signature
from services.imaging.verdict import (
    Accepted,
    RejectReason,
    Rejected,
    UploadCandidate,
    Verdict,
)

MIN_FILE_SIZE = 100                 # bytes
MAX_FILE_SIZE = 5 * 1024 * 1024     # 5MB
MIN_DIMENSION = 10                  # px
MAX_DIMENSION = 8000                # px

ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
})
ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})


@dataclass(frozen=True)
class UploadPolicy:
    min_file_size: int = MIN_FILE_SIZE
    max_file_size: int = MAX_FILE_SIZE
    min_dimension: int = MIN_DIMENSION
    max_dimension: int = MAX_DIMENSION
    allowed_mime_types: FrozenSet[str] = ALLOWED_MIME_TYPES
    allowed_extensions: FrozenSet[str] = ALLOWED_EXTENSIONS
    strict_webp_signature: bool = False

    def message_for(self, reason: RejectReason) -> str:
        if reason is RejectReason.NO_FILE:
            return "No file uploaded. Please select a photo to upload."
        if reason is RejectReason.TOO_SMALL:
            return f"File too small. Minimum size is {self.min_file_size} bytes."
        if reason is RejectReason.TOO_LARGE:
            return f"File too large. Maximum size is {_format_mb(self.max_file_size)}MB."
        if reason is RejectReason.UNSUPPORTED_MIME_TYPE:
            return f"Invalid file type. Allowed types: {', '.join(sorted(self.allowed_mime_types))}"
        if reason is RejectReason.UNSUPPORTED_EXTENSION:
            return f"Invalid file extension. Allowed extensions: {', '.join(sorted(self.allowed_extensions))}"
        if reason is RejectReason.SIGNATURE_MISMATCH:
            return "File signature does not match declared type. File may be corrupted or misnamed."
        if reason is RejectReason.UNREADABLE_DIMENSIONS:
            return "Unable to read image dimensions. File may be corrupted."
        if reason is RejectReason.DIMENSIONS_TOO_SMALL:
            return f"Image too small. Minimum dimensions: {self.min_dimension}x{self.min_dimension}px"
        return f"Image too large. Maximum dimensions: {self.max_dimension}x{self.max_dimension}px"

    def reject(self, reason: RejectReason) -> Rejected:
        return Rejected(reason=reason, message=self.message_for(reason))


DEFAULT_POLICY = UploadPolicy()


def _format_mb(n_bytes: int) -> str:
    mb = n_bytes / (1024 * 1024)
    return f"{mb:g}"


def file_extension(file_name: str) -> str:
    """
    最后一个 '.' 之后的部分（小写）。没有 '.' 时整个文件名即扩展名。
    """
    return file_name.rsplit(".", 1)[-1].lower()


def validate(
    data: Optional[bytes],
    declared_mime_type: str,
    declared_file_name: Optional[str] = None,
    policy: UploadPolicy = DEFAULT_POLICY,
) -> Verdict:
    """
    按固定顺序校验上传图片，返回第一个失败原因或 Accepted：
    存在性 -> 大小下限 -> 大小上限 -> MIME -> 扩展名 -> 文件签名 -> 宽高解析 -> 宽高下限 -> 宽高上限

    便宜的检查放前面，昂贵的结构解析放最后。纯函数，无 I/O、无共享状态。
    """
    # 空字节不算缺失，交给大小下限处理
    if data is None:
        return policy.reject(RejectReason.NO_FILE)

    size = len(data)
    if size < policy.min_file_size:
        return policy.reject(RejectReason.TOO_SMALL)
    if size > policy.max_file_size:
        return policy.reject(RejectReason.TOO_LARGE)

    mime_type = (declared_mime_type or "").strip().lower()
    fmt = format_for_mime(mime_type)
    if mime_type not in policy.allowed_mime_types or fmt is None:
        return policy.reject(RejectReason.UNSUPPORTED_MIME_TYPE)

    # 没有文件名时跳过扩展名检查，扩展名取格式默认值
    if declared_file_name:
        extension = file_extension(declared_file_name)
        if extension not in policy.allowed_extensions:
            return policy.reject(RejectReason.UNSUPPORTED_EXTENSION)
    else:
        extension = fmt.extension

    if not matches_signature(data, mime_type, strict_webp=policy.strict_webp_signature):
        return policy.reject(RejectReason.SIGNATURE_MISMATCH)

    dims = extract_dimensions(data, fmt)
    if dims is None:
        return policy.reject(RejectReason.UNREADABLE_DIMENSIONS)
    if dims.width < policy.min_dimension or dims.height < policy.min_dimension:
        return policy.reject(RejectReason.DIMENSIONS_TOO_SMALL)
    if dims.width > policy.max_dimension or dims.height > policy.max_dimension:
        return policy.reject(RejectReason.DIMENSIONS_TOO_LARGE)

    return Accepted(
        mime_type=mime_type,
        extension=extension,
        size_bytes=size,
        dimensions=dims,
    )


def validate_candidate(candidate: UploadCandidate, policy: UploadPolicy = DEFAULT_POLICY) -> Verdict:
    return validate(
        candidate.data,
        candidate.declared_mime_type,
        candidate.declared_file_name,
        policy=policy,
    )
