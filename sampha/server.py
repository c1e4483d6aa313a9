"""HTTP listener and process lifecycle (graceful and forced shutdown)."""

import enum
import logging
import os
import sys
import time
from typing import Optional

import uvicorn

from sampha.config import Settings, settings as default_settings
from sampha.main import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ServerState(str, enum.Enum):
    STARTING = "starting"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting-down"
    STOPPED = "stopped"


class LifecycleServer(uvicorn.Server):
    """uvicorn server with a two-stage interrupt policy.

    The first SIGINT/SIGTERM stops accepting connections and lets in-flight
    requests finish; a second one terminates the process immediately.
    Signals are consumed rather than re-raised, so a graceful stop exits 0.
    """

    def __init__(self, config: uvicorn.Config):
        super().__init__(config)
        self.state = ServerState.STARTING

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self.state = ServerState.SERVING
            logger.info("HTTP server is ready to accept connections")

    async def serve(self, sockets=None) -> None:
        try:
            await super().serve(sockets=sockets)
        finally:
            self.state = ServerState.STOPPED

    def handle_exit(self, sig, frame) -> None:
        if self.should_exit:
            logger.warning("second shutdown signal received, forcing immediate exit")
            os._exit(1)
        logger.info("received shutdown signal, initiating graceful shutdown...")
        logger.info("press Ctrl+C again to force immediate shutdown")
        self.state = ServerState.SHUTTING_DOWN
        self.should_exit = True


class Server:
    """Immutable listener configuration plus the composed application."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.host = self.settings.HOST
        self.port = self.settings.PORT
        logger.info(f"initializing server components on port {self.port}")
        self.app = self.build_app()
        logger.info("all server components initialized successfully")

    def build_app(self):
        return create_app(self.settings)

    def config(self) -> uvicorn.Config:
        return uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            timeout_keep_alive=self.settings.IDLE_TIMEOUT,
            # CORSLoggingMiddleware already logs every request
            access_log=False,
            log_level=self.settings.LOG_LEVEL.lower(),
        )

    def listen_and_serve(self) -> LifecycleServer:
        """Serve until shutdown. A bind failure exits the process non-zero."""
        server = LifecycleServer(self.config())
        server.run()
        return server


def main() -> int:
    start = time.monotonic()
    logging.basicConfig(level=default_settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    logger.info(f"starting {default_settings.SERVICE_NAME}...")

    server = Server(default_settings)

    logger.info(f"server initialization completed in {time.monotonic() - start:.3f}s")
    logger.info("=" * 61)

    server.listen_and_serve()

    logger.info(f"total server uptime: {time.monotonic() - start:.1f}s")
    logger.info("graceful shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
