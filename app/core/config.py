# app/core/config.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

# Python 3.11+ 用 tomllib；3.10 可用 tomli 替代
import tomli as tomllib

from services.imaging.policy import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    MAX_DIMENSION,
    MIN_DIMENSION,
    MIN_FILE_SIZE,
    UploadPolicy,
)


@dataclass(frozen=True)
class ServerConfig:
    version: str = "1.0.0"
    # 日志级别（DEBUG, INFO, WARNING, ERROR）
    log_level: str = "INFO"
    # 线程池：图片重编码等 CPU 计算
    threadpool_workers: int = 8
    # 同时进行重编码的请求数
    process_concurrency: int = 2


@dataclass(frozen=True)
class UploadConfig:
    min_file_size_bytes: int = MIN_FILE_SIZE
    max_file_size_mb: int = 5
    min_dimension: int = MIN_DIMENSION
    max_dimension: int = MAX_DIMENSION
    allowed_mime_types: Tuple[str, ...] = tuple(sorted(ALLOWED_MIME_TYPES))
    allowed_extensions: Tuple[str, ...] = tuple(sorted(ALLOWED_EXTENSIONS))
    # WebP 签名阶段是否同时校验 offset 8 的 "WEBP"
    strict_webp_signature: bool = False

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def to_policy(self) -> UploadPolicy:
        return UploadPolicy(
            min_file_size=self.min_file_size_bytes,
            max_file_size=self.max_file_size_bytes,
            min_dimension=self.min_dimension,
            max_dimension=self.max_dimension,
            allowed_mime_types=frozenset(self.allowed_mime_types),
            allowed_extensions=frozenset(self.allowed_extensions),
            strict_webp_signature=self.strict_webp_signature,
        )


@dataclass(frozen=True)
class ProcessingConfig:
    webp_quality: int = 85
    preserve_gif_animation: bool = True


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = ServerConfig()
    upload: UploadConfig = UploadConfig()
    processing: ProcessingConfig = ProcessingConfig()


def _get_table(d: Dict[str, Any], key: str) -> Dict[str, Any]:
    v = d.get(key, {})
    return v if isinstance(v, dict) else {}


def _str_tuple(v: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if v is None:
        return default
    if isinstance(v, str):
        v = [v]
    return tuple(str(x).strip().lower() for x in v)


def _bool(v: Any, key: str) -> bool:
    # toml 里写成 "false" 字符串时 bool() 会得到 True，直接报错
    if not isinstance(v, bool):
        raise ValueError(f"{key} must be a boolean (true/false), got {v!r}")
    return v


def load_config(path: str | Path = "config.toml") -> AppConfig:
    """
    从 config.toml 读取配置。
    - 缺失字段使用 dataclass 默认值
    - 类型尽量做强转，避免 toml 里写成字符串导致的类型问题
    """
    p = Path(path)
    raw = tomllib.loads(p.read_text(encoding="utf-8"))

    server = _get_table(raw, "server")
    upload = _get_table(raw, "upload")
    processing = _get_table(raw, "processing")

    server_cfg = ServerConfig(
        version=str(server.get("version", ServerConfig.version)),
        log_level=str(server.get("log_level", ServerConfig.log_level)).upper(),
        threadpool_workers=int(server.get("threadpool_workers", ServerConfig.threadpool_workers)),
        process_concurrency=int(server.get("process_concurrency", ServerConfig.process_concurrency)),
    )

    upload_cfg = UploadConfig(
        min_file_size_bytes=int(upload.get("min_file_size_bytes", UploadConfig.min_file_size_bytes)),
        max_file_size_mb=int(upload.get("max_file_size_mb", UploadConfig.max_file_size_mb)),
        min_dimension=int(upload.get("min_dimension", UploadConfig.min_dimension)),
        max_dimension=int(upload.get("max_dimension", UploadConfig.max_dimension)),
        allowed_mime_types=_str_tuple(upload.get("allowed_mime_types"), UploadConfig.allowed_mime_types),
        allowed_extensions=_str_tuple(upload.get("allowed_extensions"), UploadConfig.allowed_extensions),
        strict_webp_signature=_bool(
            upload.get("strict_webp_signature", UploadConfig.strict_webp_signature), "upload.strict_webp_signature"
        ),
    )

    processing_cfg = ProcessingConfig(
        webp_quality=int(processing.get("webp_quality", ProcessingConfig.webp_quality)),
        preserve_gif_animation=_bool(
            processing.get("preserve_gif_animation", ProcessingConfig.preserve_gif_animation),
            "processing.preserve_gif_animation",
        ),
    )

    # 基础校验：避免明显错误配置
    if server_cfg.threadpool_workers <= 0:
        raise ValueError("server.threadpool_workers must be > 0")
    if server_cfg.process_concurrency <= 0:
        raise ValueError("server.process_concurrency must be > 0")
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if server_cfg.log_level not in valid_log_levels:
        raise ValueError(f"server.log_level must be one of {valid_log_levels}, got {server_cfg.log_level}")
    if upload_cfg.min_file_size_bytes < 0:
        raise ValueError("upload.min_file_size_bytes must be >= 0")
    if upload_cfg.max_file_size_mb <= 0:
        raise ValueError("upload.max_file_size_mb must be > 0")
    if upload_cfg.min_file_size_bytes > upload_cfg.max_file_size_bytes:
        raise ValueError("upload.min_file_size_bytes must be <= upload.max_file_size_mb")
    if upload_cfg.min_dimension <= 0:
        raise ValueError("upload.min_dimension must be > 0")
    if upload_cfg.min_dimension > upload_cfg.max_dimension:
        raise ValueError("upload.min_dimension must be <= upload.max_dimension")
    if not upload_cfg.allowed_mime_types:
        raise ValueError("upload.allowed_mime_types must not be empty")
    if not upload_cfg.allowed_extensions:
        raise ValueError("upload.allowed_extensions must not be empty")
    if not 1 <= processing_cfg.webp_quality <= 100:
        raise ValueError("processing.webp_quality must be in [1, 100]")

    return AppConfig(server=server_cfg, upload=upload_cfg, processing=processing_cfg)
