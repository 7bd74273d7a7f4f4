#!/usr/bin/env python3
"""
Agno Playground API entry point
Serves configuration validation and the Agno runtime proxy over HTTP.
"""

import argparse
import os

import uvicorn
from loguru import logger


def main():
    """Main entry point for the Agno Playground API"""
    parser = argparse.ArgumentParser(
        description="Agno Playground API - agent configuration validation and Agno runtime proxy"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("AGNO_PLAYGROUND_HOST", "0.0.0.0"),
        help="Interface to bind (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("AGNO_PLAYGROUND_PORT", "8000")),
        help="Port to listen on (default: 8000)"
    )
    parser.add_argument(
        "--agno-url",
        default=None,
        help="Default Agno runtime endpoint (overrides AGNO_API_URL)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="1.0.0"
    )
    args = parser.parse_args()

    if args.agno_url:
        os.environ["AGNO_API_URL"] = args.agno_url

    logger.info("Starting Agno Playground API...")

    config = uvicorn.Config(
        app="agno_playground.api:app",
        host=args.host,
        port=args.port,
        log_level="info",
        reload=False
    )
    server = uvicorn.Server(config)

    try:
        logger.info(f"Agno Playground API starting on http://{args.host}:{args.port}")
        server.run()
    except KeyboardInterrupt:
        logger.info("Shutting down Agno Playground API...")
    except Exception as e:
        logger.error(f"Error running server: {e}")
        raise


if __name__ == "__main__":
    main()
