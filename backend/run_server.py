"""Run the API with uvicorn; host, port and log level come from settings."""
import signal
import sys

import uvicorn

from medai.core.config import settings


def handle_signal(sig, frame):
    print(f"\nReceived signal {sig}, shutting down...")
    sys.exit(0)


if __name__ == "__main__":
    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    print(f"Starting {settings.PHARMACY_NAME} backend on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        "medai.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
