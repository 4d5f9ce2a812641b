"""Run the FoodAI proxy with uvicorn."""

import os

from dotenv import load_dotenv

# Load env vars from repository root .env
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

import uvicorn  # noqa: E402

from foodai_proxy import config  # noqa: E402
from foodai_proxy.main import app  # noqa: E402


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
