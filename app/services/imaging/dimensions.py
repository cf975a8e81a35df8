# app/services/imaging/dimensions.py
from __future__ import annotations

import struct
from typing import Optional

from services.imaging.verdict import Dimensions, ImageFormat

# JPEG Start-Of-Frame: baseline / extended sequential / progressive
_SOF_MARKERS = range(0xC0, 0xC3)


def _u24le(data: bytes, offset: int) -> int:
    raw = data[offset:offset + 3]
    if len(raw) != 3:
        raise IndexError(f"need 3 bytes at offset {offset}, buffer has {len(data)}")
    return int.from_bytes(raw, "little")


def _png(data: bytes) -> tuple[int, int]:
    # IHDR 紧跟 8 字节签名 + 8 字节 chunk 头
    return struct.unpack_from(">II", data, 16)


def _gif(data: bytes) -> tuple[int, int]:
    return struct.unpack_from("<HH", data, 6)


def _jpeg(data: bytes) -> Optional[tuple[int, int]]:
    offset = 2
    while offset < len(data) - 8:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if marker in _SOF_MARKERS:
            height, width = struct.unpack_from(">HH", data, offset + 5)
            return width, height
        (segment_length,) = struct.unpack_from(">H", data, offset + 2)
        offset += segment_length + 2
    return None


def _webp(data: bytes) -> Optional[tuple[int, int]]:
    if data[0:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None

    chunk = data[12:16]
    if chunk == b"VP8 ":
        w, h = struct.unpack_from("<HH", data, 26)
        return w & 0x3FFF, h & 0x3FFF
    if chunk == b"VP8L":
        (bits,) = struct.unpack_from("<I", data, 21)
        return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1
    if chunk == b"VP8X":
        return _u24le(data, 24) + 1, _u24le(data, 27) + 1
    return None


def extract_dimensions(data: bytes, fmt: ImageFormat) -> Optional[Dimensions]:
    """
    直接从容器结构读取宽高，不解码像素。
    越界读取、未知子格式、宽或高为 0 都返回 None，不向外抛异常。
    """
    try:
        match fmt:
            case ImageFormat.PNG:
                size = _png(data)
            case ImageFormat.JPEG:
                size = _jpeg(data)
            case ImageFormat.GIF:
                size = _gif(data)
            case ImageFormat.WEBP:
                size = _webp(data)
            case _:
                size = None
    except (struct.error, IndexError):
        return None

    if size is None:
        return None
    width, height = int(size[0]), int(size[1])
    if width <= 0 or height <= 0:
        return None
    return Dimensions(width=width, height=height)
