"""
生成测试用的最小图片字节。

只保证容器头部结构正确（签名 + 宽高字段），不保证能被解码器完整解码；
需要真实可解码图片的用例请用 Pillow 生成。
"""

import argparse
import struct
import zlib
from pathlib import Path

MIN_SIZE = 100


def _pad(data: bytes, size: int) -> bytes:
    if len(data) >= size:
        return data
    return data + b"\x00" * (size - len(data))


def make_png(width: int, height: int, size: int = MIN_SIZE) -> bytes:
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    data = (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", len(ihdr))
        + chunk
        + struct.pack(">I", zlib.crc32(chunk) & 0xFFFFFFFF)
    )
    iend = struct.pack(">I", 0) + b"IEND" + struct.pack(">I", zlib.crc32(b"IEND") & 0xFFFFFFFF)
    return _pad(data, size - len(iend)) + iend


def make_jpeg(width: int, height: int, size: int = MIN_SIZE, sof_marker: int = 0xC0) -> bytes:
    # SOI + APP0(JFIF) + SOFn + EOI
    app0 = b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    sof = struct.pack(">BHHB", 8, height, width, 3) + b"\x01\x22\x00\x02\x11\x01\x03\x11\x01"
    data = (
        b"\xff\xd8"
        + b"\xff\xe0" + struct.pack(">H", len(app0) + 2) + app0
        + bytes([0xFF, sof_marker]) + struct.pack(">H", len(sof) + 2) + sof
    )
    return _pad(data, size - 2) + b"\xff\xd9"


def make_gif(width: int, height: int, size: int = MIN_SIZE, version: bytes = b"89a") -> bytes:
    data = b"GIF" + version + struct.pack("<HH", width, height) + b"\x00\x00\x00"
    return _pad(data, size - 1) + b";"


def _riff(chunk_type: bytes, payload: bytes, size: int) -> bytes:
    body = b"WEBP" + chunk_type + struct.pack("<I", len(payload)) + payload
    data = b"RIFF" + struct.pack("<I", len(body)) + body
    return _pad(data, size)


def make_webp_vp8x(width: int, height: int, size: int = MIN_SIZE) -> bytes:
    payload = b"\x00\x00\x00\x00" + (width - 1).to_bytes(3, "little") + (height - 1).to_bytes(3, "little")
    return _riff(b"VP8X", payload, size)


def make_webp_vp8l(width: int, height: int, size: int = MIN_SIZE) -> bytes:
    bits = ((width - 1) & 0x3FFF) | (((height - 1) & 0x3FFF) << 14)
    payload = b"\x2f" + struct.pack("<I", bits)
    return _riff(b"VP8L", payload, size)


def make_webp_vp8(width: int, height: int, size: int = MIN_SIZE) -> bytes:
    # frame tag(3) + start code(3) + width(2) + height(2)
    payload = b"\x00\x00\x00" + b"\x9d\x01\x2a" + struct.pack("<HH", width, height)
    return _riff(b"VP8 ", payload, size)


BUILDERS = {
    "png": make_png,
    "jpg": make_jpeg,
    "gif": make_gif,
    "webp": make_webp_vp8x,
}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="生成测试图片字节")
    parser.add_argument("--output-dir", type=str, default="test_images", help="输出目录")
    parser.add_argument("--width", type=int, default=100)
    parser.add_argument("--height", type=int, default=100)
    parser.add_argument("--size", type=int, default=MIN_SIZE, help="填充到的最小字节数")
    args = parser.parse_args()

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for ext, build in BUILDERS.items():
        path = out_dir / f"sample_{args.width}x{args.height}.{ext}"
        path.write_bytes(build(args.width, args.height, size=args.size))
        print(f"生成测试图片: {path} ({path.stat().st_size} bytes)")
