from __future__ import annotations

from typing import Optional, Tuple
import logging

from fastapi import APIRouter, File, UploadFile, Request, Form
from starlette.responses import JSONResponse, Response

from core import status_codes
from core.ids import generate_request_id
from core.response import ok, fail, rejected
from core.logging import set_request_id
from services.imaging.verdict import RejectReason, Rejected

router = APIRouter(prefix="/photos", tags=["photos"])
logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


async def _read_capped(photo: UploadFile, max_bytes: int) -> Tuple[bytes, bool]:
    """
    分块读取上传内容，超过 max_bytes 立即停止。
    返回 (已读内容, 是否超限)
    """
    buf = bytearray()
    try:
        while True:
            chunk = await photo.read(CHUNK_SIZE)
            if not chunk:
                return bytes(buf), False
            buf.extend(chunk)
            if len(buf) > max_bytes:
                return bytes(buf), True
    finally:
        await photo.close()


async def _receive(request: Request, photo: Optional[UploadFile], task_id: Optional[str], route: str):
    """
    公共前置：文件存在性、request_id、分块读取 + 硬上限。
    返回 (request_id, data, early_response)；early_response 不为 None 时直接返回。
    """
    service = request.app.state.service
    stats = request.app.state.stats

    if photo is None or not photo.filename:
        request_id = task_id or "unknown"
        set_request_id(request_id)
        logger.warning(f"[{route}] 缺失或者是空文件. filename=None")
        verdict = service.policy.reject(RejectReason.NO_FILE)
        stats.add_processing(request_id)
        stats.finish_rejected(request_id, verdict.reason_code)
        return request_id, None, JSONResponse(status_code=status_codes.REJECTED, content=rejected(request_id, verdict))

    request_id = task_id if task_id else generate_request_id(photo.filename)
    set_request_id(request_id)
    logger.info(f"[{route}] 接受到图片上传请求. request_id={request_id}, filename={photo.filename}, content_type={photo.content_type}")
    stats.add_processing(request_id)

    max_bytes = service.policy.max_file_size
    data, over_limit = await _read_capped(photo, max_bytes)
    if over_limit:
        logger.warning(f"[{route}] 文件太大. request_id={request_id}, read={len(data)}bytes, max={max_bytes}bytes")
        verdict = service.policy.reject(RejectReason.TOO_LARGE)
        stats.finish_rejected(request_id, verdict.reason_code)
        return request_id, None, JSONResponse(status_code=status_codes.REJECTED, content=rejected(request_id, verdict))

    logger.info(f"[{route}] 文件加载成功. request_id={request_id}, size={len(data)}bytes")
    return request_id, data, None


def _reject_response(request: Request, request_id: str, verdict: Rejected) -> JSONResponse:
    request.app.state.stats.finish_rejected(request_id, verdict.reason_code)
    return JSONResponse(status_code=status_codes.REJECTED, content=rejected(request_id, verdict))


@router.post("/validate")
async def validate_photo(request: Request,
        photo: Optional[UploadFile] = File(default=None),
        task_id: Optional[str] = Form(default=None),
        ):
    """
    只做校验，不处理、不存储。
    通过：200 + {success, data: {dimensions, mimeType, sizeBytes, extension}}
    拒绝：400 + {success: false, error, reasonCode}
    """
    content_type = photo.content_type if photo is not None else None
    filename = photo.filename if photo is not None else None
    request_id, data, early = await _receive(request, photo, task_id, "/validate")
    if early is not None:
        return early

    service = request.app.state.service
    result = service.inspect(data, content_type or "", filename)
    if not result.ok:
        logger.warning(f"[/validate] 校验未通过. request_id={request_id}, reason={result.verdict.reason_code}")
        return _reject_response(request, request_id, result.verdict)

    logger.info(f"[/validate] 校验通过. request_id={request_id}")
    request.app.state.stats.finish_accepted(request_id)
    return JSONResponse(status_code=status_codes.OK, content=ok(request_id, result.verdict))


@router.post("/process")
async def process_photo(request: Request,
        photo: Optional[UploadFile] = File(default=None),
        task_id: Optional[str] = Form(default=None),
        ):
    """
    校验 + 重编码（去 EXIF，非 GIF 转 WebP），直接返回处理后的图片字节。
    元信息放在响应头里，调用方据此写入 blob 存储。
    """
    content_type = photo.content_type if photo is not None else None
    filename = photo.filename if photo is not None else None
    request_id, data, early = await _receive(request, photo, task_id, "/process")
    if early is not None:
        return early

    service = request.app.state.service
    stats = request.app.state.stats
    try:
        result = await service.process(data, content_type or "", filename)
    except Exception as e:
        # 兜底：ProcessingError 以外的异常也要结束统计，避免 request_id 一直挂在 processing_ids
        logger.exception(f"[/process] 处理时出现未预期异常. request_id={request_id}, error={e}")
        stats.finish_failed(request_id)
        return JSONResponse(
            status_code=status_codes.INTERNAL_ERROR,
            content=fail(request_id, "Failed to process photo. Please try again.", status_codes.PROCESSING_FAILED),
        )

    if isinstance(result.verdict, Rejected):
        logger.warning(f"[/process] 校验未通过. request_id={request_id}, reason={result.verdict.reason_code}")
        return _reject_response(request, request_id, result.verdict)

    if not result.ok:
        logger.error(f"[/process] 图片处理失败. request_id={request_id}, error={result.error}")
        stats.finish_failed(request_id)
        return JSONResponse(
            status_code=status_codes.INTERNAL_ERROR,
            content=fail(request_id, "Failed to process photo. Please try again.", status_codes.PROCESSING_FAILED),
        )

    processed = result.processed
    dims = result.verdict.dimensions
    logger.info(f"[/process] 处理完成. request_id={request_id}, size={processed.original_size}->{processed.processed_size}")
    stats.finish_accepted(request_id)
    return Response(
        content=processed.data,
        status_code=status_codes.CREATED,
        media_type=processed.mime_type,
        headers={
            "X-Request-Id": request_id,
            "X-Original-Mime-Type": result.verdict.mime_type,
            "X-Original-Size": str(processed.original_size),
            "X-Processed-Size": str(processed.processed_size),
            "X-Size-Reduction": processed.size_reduction,
            "X-Image-Width": str(dims.width),
            "X-Image-Height": str(dims.height),
        },
    )
