import logging

import httpx
import pytest
from fastapi.testclient import TestClient

import foodai_proxy.main as main_module
from foodai_proxy.main import app
from foodai_proxy.routers.proxy import get_analysis_service
from foodai_proxy.services.analysis_service import AnalysisService
from foodai_proxy.services.gemini_gateway import GeminiGateway, build_candidates

CANDIDATES = build_candidates("https://upstream.test", ["v1beta/model-a", "v1beta/model-b", "v1/model-c"])
SECOND_PAYLOAD = {
    "candidates": [
        {"content": {"parts": [{"text": "{\"dish_name\": \"Борщ\", \"calories\": 250}"}], "role": "model"}}
    ]
}


def _stub_upstream(responses):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        model = request.url.path.rsplit("/", 1)[1].split(":", 1)[0]
        calls.append(model)
        status, body = responses[model]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    return handler, calls


@pytest.fixture
def upstream():
    """Installs a stubbed gateway for the given per-model answers and returns its call log."""

    def install(responses, **gateway_kwargs):
        handler, calls = _stub_upstream(responses)
        gateway = GeminiGateway(CANDIDATES, transport=httpx.MockTransport(handler), **gateway_kwargs)
        app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(gateway)
        return calls

    install({})
    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def test_empty_image_is_rejected_without_upstream_calls(client, upstream):
    calls = upstream({})
    resp = client.post("/proxy/gemini-vision", json={"imageData": "", "upstreamKey": "X"})
    assert resp.status_code == 400
    assert "imageData" in resp.json()["error"]
    assert calls == []


def test_missing_key_with_client_field_names(client, upstream):
    calls = upstream({})
    resp = client.post("/proxy/gemini-vision", json={"imageBase64": "QUJD"})
    assert resp.status_code == 400
    assert "upstreamKey" in resp.json()["error"]
    assert calls == []


def test_non_object_body_is_a_client_error(client, upstream):
    calls = upstream({})
    resp = client.post("/proxy/gemini-vision", content=b"not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert calls == []


def test_second_candidate_payload_is_returned_verbatim(client, upstream):
    calls = upstream(
        {
            "model-a": (503, "overloaded"),
            "model-b": (200, SECOND_PAYLOAD),
            "model-c": (200, {"never": "used"}),
        }
    )
    resp = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    assert resp.status_code == 200
    assert resp.json() == SECOND_PAYLOAD
    assert calls == ["model-a", "model-b"]


def test_all_candidates_503(client, upstream):
    calls = upstream(
        {
            "model-a": (503, "a unavailable"),
            "model-b": (503, "b unavailable"),
            "model-c": (503, "c unavailable"),
        }
    )
    resp = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert "503" in body["message"]
    assert "c unavailable" in body["message"]
    assert calls == ["model-a", "model-b", "model-c"]


def test_rejected_key_surfaces_upstream_status(client, upstream):
    calls = upstream({"model-a": (403, "API key not valid")}, terminal_statuses={401, 403})
    resp = client.post("/proxy/gemini-vision", json={"imageBase64": "QUJD", "apiKey": "bad"})
    assert resp.status_code == 403
    assert resp.json() == {
        "error": "Gemini API error: 403",
        "status": 403,
        "message": "HTTP 403: API key not valid",
    }
    assert calls == ["model-a"]


def test_repeated_requests_are_identical(client, upstream):
    upstream({"model-a": (200, {"dish_name": "Плов"})})
    first = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    second = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    assert (first.status_code, first.json()) == (second.status_code, second.json())


def test_unexpected_error_becomes_internal_error(client):
    class BrokenGateway(GeminiGateway):
        async def generate(self, payload, api_key):
            raise RuntimeError("exploded")

    app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(BrokenGateway(CANDIDATES))
    try:
        resp = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "message": "exploded"}


def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr(main_module, "MAX_BODY_BYTES", 16)
    resp = client.post("/proxy/gemini-vision", json={"imageData": "Q" * 64, "upstreamKey": "X"})
    assert resp.status_code == 413
    assert "error" in resp.json()


def test_health_and_info_routes(client, upstream):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/proxy/test").json()["status"] == "OK"
    root = client.get("/").json()
    assert root["status"] == "running"
    assert root["endpoints"]["gemini_vision"] == "POST /proxy/gemini-vision"


def test_debug_lists_models(client, upstream):
    body = client.get("/proxy/debug").json()
    assert body["models"] == ["model-a", "model-b", "model-c"]
    assert body["uptime"] >= 0
    assert "POST /proxy/gemini-vision" in body["endpoints"]


def test_unknown_route(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Endpoint not found"
    assert "GET /health" in resp.json()["availableEndpoints"]


def test_empty_data_uri_image_is_rejected_without_upstream_calls(client, upstream):
    calls = upstream({})
    resp = client.post(
        "/proxy/gemini-vision",
        json={"imageData": "data:image/jpeg;base64,", "upstreamKey": "X"},
    )
    assert resp.status_code == 400
    assert "imageData" in resp.json()["error"]
    assert calls == []


def test_all_candidates_403_exhaust_the_chain_by_default(client, upstream):
    calls = upstream({name: (403, "permission denied") for name in ("model-a", "model-b", "model-c")})
    resp = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "X"})
    assert resp.status_code == 500
    assert "HTTP 403: permission denied" in resp.json()["message"]
    assert calls == ["model-a", "model-b", "model-c"]


def test_upstream_key_never_reaches_any_log(client, upstream, caplog):
    upstream({"model-a": (503, "overloaded"), "model-b": (200, {"ok": True})})
    caplog.set_level(logging.DEBUG)
    resp = client.post("/proxy/gemini-vision", json={"imageData": "QUJD", "upstreamKey": "SUPERSECRET"})
    assert resp.status_code == 200
    assert "model-a" in caplog.text
    assert "SUPERSECRET" not in caplog.text


def test_chunked_body_without_length_is_capped(client, upstream, monkeypatch):
    calls = upstream({"model-a": (200, {"ok": True})})
    monkeypatch.setattr(main_module, "MAX_BODY_BYTES", 16)

    def chunks():
        yield b'{"imageData": "'
        yield b"Q" * 64
        yield b'", "upstreamKey": "X"}'

    resp = client.post("/proxy/gemini-vision", content=chunks(), headers={"content-type": "application/json"})
    assert resp.status_code == 413
    assert resp.json()["error"] == "Request body too large"
    assert calls == []
