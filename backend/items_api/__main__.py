import uvicorn

from .config import get_settings
from .logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    # uvicorn handles SIGINT/SIGTERM and drains in-flight requests before the lifespan shutdown
    uvicorn.run(
        "items_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        timeout_graceful_shutdown=30,
    )


if __name__ == "__main__":
    main()
