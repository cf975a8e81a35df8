# app/infra/process_gate.py
from __future__ import annotations

import asyncio

from core.config import AppConfig


def create_process_semaphore(cfg: AppConfig) -> asyncio.Semaphore:
    """
    重编码并发限制。

    - 校验是纯函数，直接在请求协程里跑，不受此限制
    - 重编码（Pillow 解码 + WebP 编码）丢到线程池，最多 N 个同时进行
    - 超出的请求在信号量上排队，避免大图同时解码把内存打满

    server.process_concurrency 与 server.threadpool_workers 是两个独立参数，
    前者一般小于后者。
    """
    return asyncio.Semaphore(cfg.server.process_concurrency)
