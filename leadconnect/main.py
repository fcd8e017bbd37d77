"""ASGI entrypoint for the lead marketplace API (``uvicorn leadconnect.main:app``)."""

import os

import uvicorn

from .core.app_factory import create_application

app = create_application()


def run() -> None:
    uvicorn.run(
        "leadconnect.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    run()
