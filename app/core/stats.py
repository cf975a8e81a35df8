# app/core/stats.py
from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import Set, Optional


@dataclass
class ServiceStats:
    """服务运行状态统计"""
    start_time: float = field(default_factory=time.time)
    total_requests: int = 0
    accepted_count: int = 0
    rejected_count: int = 0
    failed_count: int = 0
    rejections: Counter = field(default_factory=Counter)
    processing_ids: Set[str] = field(default_factory=set)
    _lock: Lock = field(default_factory=Lock, repr=False)

    # 快照缓存（避免高并发时重复计算）
    _cached_snapshot: Optional[dict] = field(default=None, repr=False)
    _cache_time: float = field(default=0.0, repr=False)
    _cache_ttl: float = field(default=0.5, repr=False)

    def add_processing(self, request_id: str) -> None:
        with self._lock:
            self.total_requests += 1
            self.processing_ids.add(request_id)
            self._invalidate_cache()

    def finish_accepted(self, request_id: str) -> None:
        with self._lock:
            self.accepted_count += 1
            self.processing_ids.discard(request_id)
            self._invalidate_cache()

    def finish_rejected(self, request_id: str, reason_code: str) -> None:
        """校验不通过（属于正常业务结果，按原因计数）"""
        with self._lock:
            self.rejected_count += 1
            self.rejections[reason_code] += 1
            self.processing_ids.discard(request_id)
            self._invalidate_cache()

    def finish_failed(self, request_id: str) -> None:
        """服务端处理异常"""
        with self._lock:
            self.failed_count += 1
            self.processing_ids.discard(request_id)
            self._invalidate_cache()

    def _invalidate_cache(self) -> None:
        """清除缓存（必须在锁内调用）"""
        self._cached_snapshot = None
        self._cache_time = 0.0

    def get_snapshot(self) -> dict:
        now = time.time()

        with self._lock:
            if self._cached_snapshot is not None and (now - self._cache_time) < self._cache_ttl:
                return self._cached_snapshot.copy()

            start_time = self.start_time
            total_requests = self.total_requests
            accepted_count = self.accepted_count
            rejected_count = self.rejected_count
            failed_count = self.failed_count
            rejections = dict(self.rejections)
            processing_ids = list(self.processing_ids)

        # 锁外进行排序、格式化
        uptime_seconds = int(now - start_time)
        snapshot = {
            "start_time": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(start_time)),
            "uptime_seconds": uptime_seconds,
            "uptime_formatted": self._format_uptime(uptime_seconds),
            "total_requests": total_requests,
            "accepted_count": accepted_count,
            "rejected_count": rejected_count,
            "failed_count": failed_count,
            "rejections": dict(sorted(rejections.items())),
            "processing_count": len(processing_ids),
            "processing_ids": sorted(processing_ids),
        }

        with self._lock:
            self._cached_snapshot = snapshot
            self._cache_time = now

        return snapshot

    @staticmethod
    def _format_uptime(seconds: int) -> str:
        days = seconds // 86400
        hours = (seconds % 86400) // 3600
        minutes = (seconds % 3600) // 60
        secs = seconds % 60

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        parts.append(f"{secs}s")

        return " ".join(parts)
