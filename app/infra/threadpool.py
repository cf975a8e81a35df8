# app/infra/threadpool.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from core.config import AppConfig


def create_threadpool(cfg: AppConfig) -> ThreadPoolExecutor:
    """
    默认线程池：asyncio.to_thread 的重编码任务跑在这里，避免阻塞事件循环。
    """
    return ThreadPoolExecutor(max_workers=cfg.server.threadpool_workers, thread_name_prefix="photo")
