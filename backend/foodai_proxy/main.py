"""FastAPI entrypoint for the FoodAI proxy."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from foodai_proxy import config
from foodai_proxy.models.schemas import HealthResponse
from foodai_proxy.routers import proxy
from foodai_proxy.routers.proxy import PUBLIC_ENDPOINTS, now_iso_utc

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# httpx logs full request URLs at INFO, and the Gemini key rides in the query string.
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

MAX_BODY_BYTES = config.MAX_BODY_MB * 1024 * 1024


def _body_too_large() -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"error": "Request body too large", "limit": f"{config.MAX_BODY_MB}mb"},
    )


class BodySizeLimitMiddleware:
    """Counts body bytes as they arrive, so chunked uploads without Content-Length are capped too."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > MAX_BODY_BYTES:
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s %s starting on port %s", config.SERVICE_NAME, config.SERVICE_VERSION, config.PORT)
    for endpoint in PUBLIC_ENDPOINTS:
        logger.info("Route: %s", endpoint)
    yield
    logger.info("%s stopped", config.SERVICE_NAME)


app = FastAPI(
    title=config.SERVICE_NAME,
    description="Gemini Vision proxy for the FoodAI iOS app",
    version=config.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BodySizeLimitMiddleware)


@app.middleware("http")
async def log_and_limit_requests(request: Request, call_next):
    logger.info(
        "%s %s origin=%s user-agent=%s",
        request.method,
        request.url.path,
        request.headers.get("origin", "No origin"),
        request.headers.get("user-agent", "-"),
    )

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        logger.warning("Rejected %s byte body on %s", content_length, request.url.path)
        return _body_too_large()

    return await call_next(request)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request body: {'; '.join(problems) or 'expected a JSON object'}"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"error": "Endpoint not found", "availableEndpoints": PUBLIC_ENDPOINTS},
        )
    if exc.status_code == 413:
        logger.warning("Rejected oversized streamed body on %s", request.url.path)
        return _body_too_large()
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


app.include_router(proxy.router, prefix="/proxy", tags=["proxy"])

@app.get("/")
async def root():
    return {
        "service": config.SERVICE_NAME,
        "status": "running",
        "timestamp": now_iso_utc(),
        "endpoints": {
            "health": "GET /health",
            "test": "GET /proxy/test",
            "debug": "GET /proxy/debug",
            "gemini_vision": "POST /proxy/gemini-vision",
        },
        "usage": "Proxy server for the FoodAI iOS app",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        service=config.SERVICE_NAME,
        timestamp=now_iso_utc(),
        version=config.SERVICE_VERSION,
    )
