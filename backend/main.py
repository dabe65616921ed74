from __future__ import annotations

import os

import uvicorn

from backend.app.main import app


def run() -> None:
    """Run the Daybook FastAPI application with environment-aware host and port."""

    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
