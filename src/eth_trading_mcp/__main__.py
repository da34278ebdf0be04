"""Entry point for the MCP server."""

import asyncio
import logging
import sys

from .config import configure_logging, load_config
from .server import TradingMCPServer

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the MCP server."""
    try:
        asyncio.run(async_main())
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


async def async_main():
    """Async main function."""
    config = load_config()
    configure_logging(config.log_level)

    server = TradingMCPServer(config)
    if config.wallet_address:
        logger.info("Default simulation sender: %s", config.wallet_address)
    else:
        logger.info("No wallet configured; swap gas is estimated without simulation")

    await server.run()


if __name__ == "__main__":
    main()
