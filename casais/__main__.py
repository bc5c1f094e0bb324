"""Run the API with uvicorn: ``python -m casais``."""

from __future__ import annotations

import argparse
from typing import Sequence

import uvicorn

from .config import get_settings


def main(argv: Sequence[str] | None = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Casais record-keeping API")
    parser.add_argument("--host", default=settings.http_host, help="Bind address for the API")
    parser.add_argument("--port", type=int, default=settings.http_port, help="Listening port")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    args = parser.parse_args(argv)

    uvicorn.run(
        "casais.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
