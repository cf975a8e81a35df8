# app/services/imaging/signatures.py
from __future__ import annotations

from typing import Dict, Optional, Tuple

from services.imaging.verdict import ImageFormat

# 探测全部签名所需的最少字节数（WebP 需要看到 offset 8..11）
MIN_PROBE_BYTES = 12

SIGNATURES: Dict[ImageFormat, Tuple[bytes, ...]] = {
    ImageFormat.JPEG: (b"\xff\xd8\xff",),
    ImageFormat.PNG: (b"\x89PNG\r\n\x1a\n",),
    ImageFormat.GIF: (b"GIF87a", b"GIF89a"),
    ImageFormat.WEBP: (b"RIFF",),
}

MIME_FORMATS: Dict[str, ImageFormat] = {
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/png": ImageFormat.PNG,
    "image/gif": ImageFormat.GIF,
    "image/webp": ImageFormat.WEBP,
}


def format_for_mime(mime_type: str | None) -> Optional[ImageFormat]:
    if not mime_type:
        return None
    return MIME_FORMATS.get(mime_type.strip().lower())


def _has_signature(data: bytes, fmt: ImageFormat, strict_webp: bool) -> bool:
    if not any(data.startswith(sig) for sig in SIGNATURES[fmt]):
        return False
    if fmt is ImageFormat.WEBP and strict_webp:
        return data[8:12] == b"WEBP"
    return True


def matches_signature(data: bytes, mime_type: str, strict_webp: bool = False) -> bool:
    """
    判断文件头是否与声明的 MIME 类型一致。
    - 未知 MIME 一律不匹配
    - 默认 WebP 只校验 RIFF，strict_webp=True 时额外要求 offset 8 为 WEBP
    """
    fmt = format_for_mime(mime_type)
    if fmt is None or len(data) < MIN_PROBE_BYTES:
        return False
    return _has_signature(data, fmt, strict_webp)


def sniff_format(data: bytes) -> Optional[ImageFormat]:
    """
    只看字节推断格式（用于日志诊断）。RIFF 容器必须带 WEBP 标记才算 WebP。
    """
    if len(data) < MIN_PROBE_BYTES:
        return None
    for fmt in ImageFormat:
        if _has_signature(data, fmt, strict_webp=True):
            return fmt
    return None
