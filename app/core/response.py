# app/core/response.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

from services.imaging.verdict import Accepted, Rejected


@dataclass(frozen=True)
class ApiResponse:
    request_id: str
    success: bool
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def ok(request_id: str, verdict: Accepted) -> Dict[str, Any]:
    """
    成功：success=true，data 带宽高、MIME、大小
    """
    return ApiResponse(
        request_id=request_id,
        success=True,
        data={
            "dimensions": verdict.dimensions.to_dict(),
            "mimeType": verdict.mime_type,
            "sizeBytes": verdict.size_bytes,
            "extension": verdict.extension,
        },
    ).to_dict()


def fail(request_id: str, error: str, reason_code: str) -> Dict[str, Any]:
    """
    失败：success=false，error 给人看，reasonCode 给程序判断
    """
    return {
        "request_id": request_id,
        "success": False,
        "error": error,
        "reasonCode": reason_code,
    }


def rejected(request_id: str, verdict: Rejected) -> Dict[str, Any]:
    return fail(request_id, verdict.message, verdict.reason_code)
