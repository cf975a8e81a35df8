# app/services/processing.py
from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, ImageFile, UnidentifiedImageError

# 截断的图片直接失败，不输出带黑边的结果
ImageFile.LOAD_TRUNCATED_IMAGES = False


class ProcessingError(RuntimeError):
    pass


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes
    mime_type: str
    extension: str
    original_size: int

    @property
    def processed_size(self) -> int:
        return len(self.data)

    @property
    def size_reduction(self) -> str:
        if self.original_size <= 0:
            return "0.00%"
        pct = (self.original_size - self.processed_size) / self.original_size * 100
        return f"{pct:.2f}%"


def _to_webp_mode(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "RGBA"):
        return img
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def reencode_image(
    data: bytes,
    mime_type: str,
    webp_quality: int = 85,
    preserve_gif_animation: bool = True,
) -> ProcessedImage:
    """
    重新编码已通过校验的图片，去掉 EXIF 等元数据：
    - GIF：保持 GIF（可保留动画帧）
    - 其他：统一转 WebP
    Pillow 只写出像素和必要的调色板信息，不带原图 EXIF。
    """
    original_size = len(data)
    out = io.BytesIO()

    try:
        with Image.open(io.BytesIO(data)) as img:
            if mime_type == "image/gif":
                animated = preserve_gif_animation and getattr(img, "is_animated", False)
                img.save(out, format="GIF", save_all=animated)
                return ProcessedImage(
                    data=out.getvalue(),
                    mime_type="image/gif",
                    extension="gif",
                    original_size=original_size,
                )

            img.load()
            _to_webp_mode(img).save(out, format="WEBP", quality=webp_quality, exif=b"")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ProcessingError(f"image re-encode failed: {e}") from e

    return ProcessedImage(
        data=out.getvalue(),
        mime_type="image/webp",
        extension="webp",
        original_size=original_size,
    )
