from __future__ import annotations

from typing import List, Optional

from foodai_proxy.models.schemas import AnalysisRequest, ClientError
from foodai_proxy.services.prompt_builder import strip_data_uri


def find_missing_fields(request: AnalysisRequest) -> List[str]:
    missing = []
    # A bare `data:image/jpeg;base64,` prefix carries no image.
    if not strip_data_uri(request.image_data or "").strip():
        missing.append("imageData")
    if not (request.upstream_key or "").strip():
        missing.append("upstreamKey")
    return missing


def validate_analysis_request(request: AnalysisRequest) -> Optional[ClientError]:
    """Return a ClientError naming the missing fields, or None if the request is usable."""
    missing = find_missing_fields(request)
    if missing:
        return ClientError(f"Missing required parameter(s): {', '.join(missing)}")
    return None
