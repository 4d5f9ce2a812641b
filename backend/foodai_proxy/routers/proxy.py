"""Proxy routes used by the iOS client."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from foodai_proxy import config
from foodai_proxy.models.schemas import AnalysisRequest, DebugInfo
from foodai_proxy.services.analysis_service import AnalysisService, analysis_service

logger = logging.getLogger(__name__)

router = APIRouter()

PUBLIC_ENDPOINTS = [
    "GET /",
    "GET /health",
    "GET /proxy/test",
    "GET /proxy/debug",
    "POST /proxy/gemini-vision",
]

_process_started = time.monotonic()


def now_iso_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_analysis_service() -> AnalysisService:
    return analysis_service


@router.post("/gemini-vision")
async def gemini_vision(
    request: AnalysisRequest,
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Analyse a food photo with Gemini.

    The upstream JSON is returned verbatim on success; failures always carry
    an `error` field.
    """
    logger.info("Received image analysis request")
    status_code, body = await service.analyze(request)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/test")
async def proxy_test():
    return {
        "status": "OK",
        "message": "Proxy server is up",
        "timestamp": now_iso_utc(),
        "version": config.SERVICE_VERSION,
    }


@router.get("/debug", response_model=DebugInfo)
async def proxy_debug(service: AnalysisService = Depends(get_analysis_service)):
    return DebugInfo(
        timestamp=now_iso_utc(),
        uptime=round(time.monotonic() - _process_started, 3),
        environment=config.APP_ENV,
        endpoints=PUBLIC_ENDPOINTS,
        models=service.gateway.model_labels,
    )
