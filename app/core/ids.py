# app/core/ids.py
from __future__ import annotations

import random
import string
from pathlib import Path


def generate_request_id(filename: str | None) -> str:
    """
    根据上传文件名生成 request_id: 文件名_8位随机字符
    文件名缺失或只有扩展名时用 "photo" 作前缀
    """
    stem = Path(filename).stem if filename else ""
    name = stem.strip().replace(" ", "_") or "photo"
    random_chars = ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))
    return f"{name}_{random_chars}"
