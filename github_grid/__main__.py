import logging

import uvicorn

from github_grid.core.observability import configure_logging
from github_grid.main import create_app
from github_grid.settings import Settings


logger = logging.getLogger(__name__)


def run() -> None:
    """Serve the contribution grid until quit is requested."""

    settings = Settings()
    configure_logging(settings)

    server: uvicorn.Server | None = None

    def request_exit() -> None:
        if server is not None:
            server.should_exit = True

    app = create_app(settings, on_quit=request_exit)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    )
    logger.info("Serving contribution grid on http://%s:%d", settings.host, settings.port)
    server.run()


if __name__ == "__main__":
    run()
