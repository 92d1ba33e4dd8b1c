"""
Runs one Voyage service with uvicorn.

    python -m voyage user                  # port 3000
    python -m voyage trip --port 8009
    python -m voyage all --reload          # every router in one app
"""

import argparse
import os

import uvicorn

from voyage.config import SERVICE_PORTS, settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voyage", description="Run a Voyage service.")
    parser.add_argument("service", choices=sorted(SERVICE_PORTS) + ["all"])
    parser.add_argument("--host", default=settings.backend_host)
    parser.add_argument("--port", type=int, default=None, help="defaults to the service's port")
    parser.add_argument("--reload", action="store_true", help="restart on code changes (development)")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    # voyage.main builds the app named by settings.service; the reloader
    # subprocess reads it back from the environment
    os.environ["SERVICE"] = args.service
    settings.service = args.service
    uvicorn.run(
        "voyage.main:app",
        host=args.host,
        port=args.port or settings.port_for(args.service),
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
