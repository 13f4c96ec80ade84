"""
Main module: runs the relay server.
"""

from __future__ import annotations

import asyncio
import logging

import uvicorn

from codestream.config import Configuration
from codestream.server import create_app

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)


async def main() -> None:
    """Main entry point - HTTP interface with graceful shutdown handling."""
    config = Configuration()
    relay_config = config.build_relay_config()

    if relay_config.gateway.api_key is None:
        logging.warning(
            "Gateway API key not set; requests will fail until it is configured"
        )

    app = create_app(relay_config)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=relay_config.host,
            port=relay_config.port,
            log_level=relay_config.log_level,
        )
    )

    try:
        # uvicorn installs its own SIGINT/SIGTERM handlers
        await server.serve()
    except Exception as e:
        logging.error(f"Application error: {e}")
        raise
    finally:
        logging.info("Application shutdown complete")


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
