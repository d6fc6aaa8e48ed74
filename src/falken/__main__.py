"""Entry point for running Falken via ``python -m falken``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered Falken session server."""

    host = os.environ.get("FALKEN_HOST", "0.0.0.0")
    port = int(os.environ.get("FALKEN_PORT", "8000"))
    level = os.environ.get("FALKEN_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("falken.ui:app", host=host, port=port, reload=False, log_level=level.lower())


if __name__ == "__main__":
    main()
