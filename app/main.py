from __future__ import annotations

import asyncio

from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import load_config
from core.logging import init_logging
from core.stats import ServiceStats
from infra.threadpool import create_threadpool
from infra.process_gate import create_process_semaphore

from services.upload_service import PhotoUploadService

from api.routes import router as api_router
from api.health_router import router as health_router


def create_app() -> FastAPI:
    app = FastAPI(title="Photo Upload Gate", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.toml"
        LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
        cfg = load_config(CONFIG_PATH)
        init_logging(cfg.server.log_level, log_dir=LOG_DIR)

        executor = create_threadpool(cfg)
        loop = asyncio.get_running_loop()
        loop.set_default_executor(executor)

        process_sem = create_process_semaphore(cfg)

        app.state.cfg = cfg
        app.state.executor = executor
        app.state.service = PhotoUploadService(cfg=cfg, process_sem=process_sem)
        app.state.stats = ServiceStats()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        executor = getattr(app.state, "executor", None)
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    app.include_router(health_router)
    app.include_router(api_router)
    return app


app = create_app()


# uvicorn main:app --app-dir app --host 0.0.0.0 --port 8090 --reload
