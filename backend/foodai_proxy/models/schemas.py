"""
Pydantic and dataclass models for the vision proxy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AnalysisRequest(BaseModel):
    """Inbound analysis request from the mobile client."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    image_data: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("imageData", "imageBase64", "image_data"),
        description="JPEG bytes, base64-encoded",
    )
    upstream_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("upstreamKey", "apiKey", "upstream_key"),
        description="Caller-supplied Gemini API key",
    )


@dataclass(frozen=True, slots=True)
class EndpointCandidate:
    """One upstream model endpoint the gateway may try."""

    url_template: str
    model_label: str


# Per-attempt outcomes, discarded inside the fallback loop.


@dataclass(slots=True)
class UpstreamSuccess:
    payload: Any


@dataclass(slots=True)
class UpstreamFailure:
    model_label: str
    detail: str
    status_code: Optional[int] = None


UpstreamCallOutcome = Union[UpstreamSuccess, UpstreamFailure]


# Terminal results, one per inbound request.


@dataclass(slots=True)
class Success:
    payload: Any


@dataclass(slots=True)
class ClientError:
    message: str


@dataclass(slots=True)
class UpstreamError:
    status_code: int
    message: str


@dataclass(slots=True)
class InternalError:
    message: str


GatewayResult = Union[Success, ClientError, UpstreamError, InternalError]


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str = "healthy"
    service: str
    timestamp: str
    version: str


class DebugInfo(BaseModel):
    """Diagnostic payload for /proxy/debug."""

    status: str = "running"
    timestamp: str
    uptime: float
    environment: str
    endpoints: list[str]
    models: list[str]
