"""Entrypoint for launching the plotgen FastAPI server."""
from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    level = os.environ.get("PLOTGEN_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    host = os.environ.get("PLOTGEN_HOST", "0.0.0.0")
    port = int(os.environ.get("PLOTGEN_PORT", "8000"))
    uvicorn.run("plotgen.server.app:app", host=host, port=port, reload=False, log_level=level.lower())


if __name__ == "__main__":
    main()
