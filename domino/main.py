"""
Entry point for the domino server (``domino-server``).
"""

import asyncio
import logging
import sys

import uvicorn

from domino.config import DB_PATH, LOG_LEVEL, WEB_HOST, WEB_PORT
from domino.game_engine import Rules

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=LOG_LEVEL,
)
logger = logging.getLogger(__name__)


async def run_web_server(host: str = WEB_HOST, port: int = WEB_PORT):
    """Serve the REST and WebSocket API. Tables are created by the app's lifespan."""
    from web.server import app
    server = uvicorn.Server(uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_level=LOG_LEVEL.lower(),
    ))
    await server.serve()


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    # Optional positional overrides: domino-server [host] [port]
    host = args[0] if args else WEB_HOST
    port = int(args[1]) if len(args) > 1 else WEB_PORT

    logger.info(f"Default rules: {Rules().to_dict()}")
    logger.info(f"Database: {DB_PATH}")
    logger.info(f"Domino server starting on {host}:{port}")
    try:
        asyncio.run(run_web_server(host, port))
    except KeyboardInterrupt:
        logger.info("Shutting down.")


if __name__ == "__main__":
    main()
