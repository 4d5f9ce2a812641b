"""
Food photo analysis: validate -> build prompt -> fallback across models -> translate.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Tuple

from foodai_proxy.models.schemas import AnalysisRequest, GatewayResult, InternalError
from foodai_proxy.services.gemini_gateway import GeminiGateway, gemini_gateway
from foodai_proxy.services.prompt_builder import build_generate_content_payload
from foodai_proxy.services.request_validator import validate_analysis_request
from foodai_proxy.services.response_translator import translate_result

logger = logging.getLogger(__name__)


class AnalysisService:
    def __init__(self, gateway: Optional[GeminiGateway] = None) -> None:
        self.gateway = gateway or gemini_gateway

    async def run(self, request: AnalysisRequest) -> GatewayResult:
        error = validate_analysis_request(request)
        if error is not None:
            logger.info("Rejected analysis request: %s", error.message)
            return error

        try:
            payload = build_generate_content_payload(request.image_data)
            return await self.gateway.generate(payload, request.upstream_key.strip())
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while analysing image")
            return InternalError(str(exc) or type(exc).__name__)

    async def analyze(self, request: AnalysisRequest) -> Tuple[int, Any]:
        """Returns the outward (status_code, body) for one inbound request."""
        started = time.perf_counter()
        result = await self.run(request)
        status_code, body = translate_result(result)
        logger.info(
            "Analysis finished with HTTP %s in %.0fms",
            status_code,
            (time.perf_counter() - started) * 1000,
        )
        return status_code, body


analysis_service = AnalysisService()
