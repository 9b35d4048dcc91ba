"""
grpc-blog process entry point.

Starts the blog gRPC service, the HTTPS server for the web UI and gRPC-Web,
and runs until Ctrl+C.
Run from the project folder: python main.py
"""

import asyncio
import logging
import sys

from grpcblog.config import settings
from grpcblog.supervisor import Supervisor

# ── Logging ───────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


async def main() -> None:
    logger.info("🚀 %s is starting up", settings.app_name)
    await Supervisor(settings).run()
    logger.info("🛑 %s has shut down", settings.app_name)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception:
        logger.exception("Fatal error, exiting")
        sys.exit(1)
