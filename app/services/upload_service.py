# app/services/upload_service.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from core.config import AppConfig
from core.logging import log_stage
from services.imaging.policy import validate
from services.imaging.signatures import sniff_format
from services.imaging.verdict import Accepted, Rejected, RejectReason, Verdict
from services.processing import ProcessedImage, ProcessingError, reencode_image


@dataclass(frozen=True)
class UploadResult:
    ok: bool
    verdict: Verdict
    processed: Optional[ProcessedImage] = None
    error: Optional[str] = None


class PhotoUploadService:
    """
    上传编排：
    - 校验（纯函数，按配置生成的 UploadPolicy）并记录阶段日志
    - 可选：线程池中重编码（去 EXIF、转 WebP），信号量限流
    持久化到 blob 存储由调用方负责。
    """

    def __init__(self, cfg: AppConfig, process_sem: asyncio.Semaphore | None = None):
        self.cfg = cfg
        self.policy = cfg.upload.to_policy()
        self.process_sem = process_sem

    def inspect(self, data: Optional[bytes], mime_type: str, file_name: Optional[str]) -> UploadResult:
        size = len(data) if data else 0
        log_stage("VALIDATION_START", size=size, mimeType=mime_type, originalname=file_name)

        started = time.perf_counter()
        verdict = validate(data, mime_type, file_name, policy=self.policy)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if isinstance(verdict, Rejected):
            self._log_rejection(verdict, data, mime_type, file_name)
            return UploadResult(ok=False, verdict=verdict, error=verdict.message)

        dims = verdict.dimensions
        log_stage(
            "VALIDATION_PASSED",
            size=verdict.size_bytes,
            mimeType=verdict.mime_type,
            width=dims.width,
            height=dims.height,
            elapsed_ms=elapsed_ms,
        )
        return UploadResult(ok=True, verdict=verdict)

    async def process(self, data: Optional[bytes], mime_type: str, file_name: Optional[str]) -> UploadResult:
        checked = self.inspect(data, mime_type, file_name)
        if not checked.ok:
            return checked

        verdict: Accepted = checked.verdict
        proc = self.cfg.processing
        log_stage("PROCESSING_START", originalSize=verdict.size_bytes, mimeType=verdict.mime_type)

        try:
            if self.process_sem is None:
                processed = await asyncio.to_thread(
                    reencode_image, data, verdict.mime_type, proc.webp_quality, proc.preserve_gif_animation
                )
            else:
                async with self.process_sem:
                    processed = await asyncio.to_thread(
                        reencode_image, data, verdict.mime_type, proc.webp_quality, proc.preserve_gif_animation
                    )
        except ProcessingError as e:
            log_stage("PROCESSING_FAILED", level=logging.ERROR, error=str(e))
            return UploadResult(ok=False, verdict=verdict, error=str(e))

        log_stage(
            "PROCESSING_COMPLETE",
            format=processed.extension,
            originalFormat=verdict.mime_type,
            originalSize=processed.original_size,
            processedSize=processed.processed_size,
            reduction=processed.size_reduction,
        )
        return UploadResult(ok=True, verdict=verdict, processed=processed)

    def _log_rejection(self, verdict: Rejected, data: Optional[bytes], mime_type: str, file_name: Optional[str]) -> None:
        fields = {"reason": verdict.reason_code}
        if verdict.reason in (RejectReason.TOO_SMALL, RejectReason.TOO_LARGE):
            fields["size"] = len(data) if data else 0
        elif verdict.reason is RejectReason.UNSUPPORTED_MIME_TYPE:
            fields["mimeType"] = mime_type
        elif verdict.reason is RejectReason.UNSUPPORTED_EXTENSION:
            fields["originalname"] = file_name
        elif verdict.reason is RejectReason.SIGNATURE_MISMATCH:
            sniffed = sniff_format(data)
            fields["mimeType"] = mime_type
            fields["sniffed"] = sniffed.mime_type if sniffed else None
            fields["firstBytes"] = data[:8].hex(" ")
        log_stage("VALIDATION_FAILED", level=logging.WARNING, **fields)
