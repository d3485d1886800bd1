"""
Tracker API server entry point.

Run with:
    python -m initiative.api.main

Or with uvicorn directly:
    uvicorn initiative.api.main:app --reload --host 127.0.0.1 --port 8000
"""

import argparse
import logging
import os

import uvicorn

from ..interface.config import DEFAULT_CONFIG, ENV_PREFIX, apply_env, load_config
from .server import create_app


def main():
    """Main entry point for the tracker API server."""
    config = apply_env(load_config())

    parser = argparse.ArgumentParser(description="Initiative tracker API server")
    parser.add_argument(
        "--host",
        default=config.get("host", DEFAULT_CONFIG["host"]),
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.get("port", DEFAULT_CONFIG["port"]),
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--templates",
        default=None,
        help="Directory of template overrides",
    )
    parser.add_argument(
        "--no-demo",
        action="store_true",
        help="Start with no encounters instead of the demo seed",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.debug else config.get("log_level", "INFO")
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    # get_app() reads these when uvicorn imports the module
    os.environ[f"{ENV_PREFIX}SEED_DEMO"] = "0" if args.no_demo else "1"
    if args.templates:
        os.environ[f"{ENV_PREFIX}TEMPLATES_DIR"] = args.templates

    logging.getLogger(__name__).info(
        "Starting tracker API on %s:%s (demo seed: %s)",
        args.host, args.port, not args.no_demo,
    )

    uvicorn.run(
        "initiative.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=log_level.lower(),
    )


def get_app():
    """Factory function for creating the FastAPI app."""
    config = apply_env(load_config())
    return create_app(
        seed_demo=config.get("seed_demo", True),
        templates_dir=os.environ.get(f"{ENV_PREFIX}TEMPLATES_DIR"),
    )


# App instance for direct uvicorn usage
app = get_app()


if __name__ == "__main__":
    main()
