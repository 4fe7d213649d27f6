"""Run the JobBoard API server.

Usage:
    python -m jobboard                  # http://127.0.0.1:8000
    python -m jobboard --port 3000      # Custom port
    python -m jobboard --host 0.0.0.0   # Allow external connections
"""

import argparse

import uvicorn

from jobboard.core.config import settings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=f"{settings.app_name} API server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    uvicorn.run(
        "jobboard.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
