from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request

from rabbithole.collectors.info import get_info
from rabbithole.collectors.system import ResourceSampler, ResourceSnapshot, bytes_to_gb
from rabbithole.config import RabbitholeConfig, load_config_or_default
from rabbithole.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def get_sampler(request: Request) -> ResourceSampler:
    return request.app.state.sampler


def get_app_config(request: Request) -> RabbitholeConfig:
    return request.app.state.config


def snapshot_payload(snap: ResourceSnapshot) -> Dict[str, Any]:
    return {
        "cpu_percent": snap.cpu_percent,
        "memory_used_gb": bytes_to_gb(snap.memory_used_bytes),
        "memory_total_gb": bytes_to_gb(snap.memory_total_bytes),
        "disk_used_gb": bytes_to_gb(snap.disk_used_bytes),
        "disk_total_gb": bytes_to_gb(snap.disk_total_bytes),
        "net_down_kbps": snap.net_down_rate,
        "net_up_kbps": snap.net_up_rate,
        "temperature_c": snap.temperature,
        "load_avg_one": snap.load_avg_1m,
    }


def create_app(
    config: Optional[RabbitholeConfig] = None,
    sampler: Optional[ResourceSampler] = None,
) -> FastAPI:
    cfg = config or load_config_or_default()
    app = FastAPI(title="rabbithole")
    app.state.config = cfg
    app.state.sampler = sampler or ResourceSampler.create(root_mount=cfg.root_mount)
    logger.info("sampler ready (root_mount=%s)", cfg.root_mount)

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "rabbithole"}

    # sync endpoint: runs on the threadpool, so polls may overlap
    @app.get("/stats")
    def stats(
        sampler: ResourceSampler = Depends(get_sampler),
        config: RabbitholeConfig = Depends(get_app_config),
    ):
        payload = snapshot_payload(sampler.sample())
        payload["poll_interval_ms"] = config.poll_interval_ms
        return payload

    @app.get("/info")
    def info(config: RabbitholeConfig = Depends(get_app_config)):
        return get_info(config_path=config.config_path)

    return app


def serve() -> None:
    cfg = load_config_or_default()
    configure_logging(level=cfg.log_level, log_file=cfg.log_file)
    logger.info("serving on %s:%d", cfg.http_host, cfg.http_port)
    # also servable as: uvicorn --factory rabbithole.main:create_app
    uvicorn.run(create_app(cfg), host=cfg.http_host, port=cfg.http_port)
