"""
Gemini `generateContent` gateway with sequential model fallback.

Candidates are tried strictly in order with at most one call in flight.
The first 2xx JSON response wins. Transport errors and non-2xx statuses move
on to the next candidate. Deployments may opt in to `terminal_statuses`
(empty by default): such a status ends the run with that upstream status.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from foodai_proxy import config
from foodai_proxy.models.schemas import (
    EndpointCandidate,
    GatewayResult,
    InternalError,
    Success,
    UpstreamCallOutcome,
    UpstreamError,
    UpstreamFailure,
    UpstreamSuccess,
)

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v1beta"


def build_candidates(api_base: str, chain: Iterable[str]) -> Tuple[EndpointCandidate, ...]:
    """
    Accepts chain entries of the form `v1beta/gemini-1.5-flash` or a bare
    model name (which gets DEFAULT_API_VERSION). Order is preserved.
    """
    base = api_base.rstrip("/")
    candidates = []
    for entry in chain:
        entry = entry.strip().strip("/")
        if not entry:
            continue
        version, _, model = entry.rpartition("/")
        version = version or DEFAULT_API_VERSION
        template = f"{base}/{version}/models/{{model}}:generateContent?key={{key}}"
        candidates.append(EndpointCandidate(url_template=template, model_label=model))
    return tuple(candidates)


DEFAULT_CANDIDATES = build_candidates(config.GEMINI_API_BASE, config.GEMINI_MODEL_CHAIN)


def render_url(candidate: EndpointCandidate, api_key: str) -> str:
    return candidate.url_template.format(model=candidate.model_label, key=quote(api_key, safe=""))


def masked_url(candidate: EndpointCandidate) -> str:
    return candidate.url_template.format(model=candidate.model_label, key="***")


class GeminiGateway:
    """Drives one analysis request across the ordered candidate list."""

    def __init__(
        self,
        candidates: Optional[Sequence[EndpointCandidate]] = None,
        *,
        timeout_s: Optional[float] = None,
        excerpt_chars: Optional[int] = None,
        terminal_statuses: Optional[Iterable[int]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.candidates: Tuple[EndpointCandidate, ...] = tuple(
            DEFAULT_CANDIDATES if candidates is None else candidates
        )
        self.timeout_s = config.GEMINI_TIMEOUT_SEC if timeout_s is None else timeout_s
        self.excerpt_chars = config.GEMINI_ERROR_EXCERPT_CHARS if excerpt_chars is None else excerpt_chars
        self.terminal_statuses = frozenset(
            config.GEMINI_TERMINAL_STATUSES if terminal_statuses is None else terminal_statuses
        )
        self.transport = transport
        self.log = log or logger

    @property
    def model_labels(self) -> list:
        return [c.model_label for c in self.candidates]

    async def generate(self, payload: Dict[str, Any], api_key: str) -> GatewayResult:
        if not self.candidates:
            return InternalError("No upstream endpoints configured")

        last_failure: Optional[UpstreamFailure] = None
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
            for index, candidate in enumerate(self.candidates, start=1):
                outcome = await self._attempt(client, candidate, payload, api_key, index)
                if isinstance(outcome, UpstreamSuccess):
                    return Success(outcome.payload)

                last_failure = outcome
                if outcome.status_code in self.terminal_statuses:
                    self.log.warning(
                        "Upstream rejected the credential on %s (HTTP %s); not trying further models",
                        candidate.model_label,
                        outcome.status_code,
                    )
                    return UpstreamError(outcome.status_code, outcome.detail)

        return InternalError(
            f"All {len(self.candidates)} upstream endpoints failed; "
            f"last error ({last_failure.model_label}): {last_failure.detail}"
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        candidate: EndpointCandidate,
        payload: Dict[str, Any],
        api_key: str,
        index: int,
    ) -> UpstreamCallOutcome:
        total = len(self.candidates)
        self.log.info("Trying model %s (%d/%d): %s", candidate.model_label, index, total, masked_url(candidate))
        started = time.perf_counter()

        try:
            resp = await client.post(render_url(candidate, api_key), json=payload)
        except httpx.HTTPError as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            detail = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            self.log.warning(
                "Model %s transport error after %.0fms: %s", candidate.model_label, elapsed_ms, detail
            )
            return UpstreamFailure(model_label=candidate.model_label, detail=detail)

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.log.info("Model %s answered HTTP %s in %.0fms", candidate.model_label, resp.status_code, elapsed_ms)

        if not resp.is_success:
            excerpt = resp.text[: self.excerpt_chars]
            self.log.warning("Model %s error body: %s", candidate.model_label, excerpt)
            return UpstreamFailure(
                model_label=candidate.model_label,
                detail=f"HTTP {resp.status_code}: {excerpt}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            excerpt = resp.text[: self.excerpt_chars]
            self.log.warning("Model %s returned a non-JSON body: %s", candidate.model_label, excerpt)
            return UpstreamFailure(
                model_label=candidate.model_label,
                detail=f"HTTP {resp.status_code}: invalid JSON body: {excerpt}",
                status_code=resp.status_code,
            )

        self.log.info("Model %s succeeded", candidate.model_label)
        return UpstreamSuccess(data)


gemini_gateway = GeminiGateway()
