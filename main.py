"""
Main entrypoint: FastAPI server for the TrustCheck verification API.

Reads API_HOST / API_PORT / DATABASE_URL / MF_API_URL from the environment
(or .env), makes sure the schema exists, then serves the app with uvicorn.

Same as: uvicorn backend_trustcheck.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_trustcheck.trustcheck_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Ensure the database schema, then run the FastAPI server in the main thread."""
    from backend_trustcheck.config import get_settings
    from backend_trustcheck.database import get_database

    settings = get_settings()
    get_database(settings.database_url)
    logger.info(
        "main_config_loaded",
        registry_url=settings.registry_url,
        default_phone_region=settings.default_phone_region,
        cache_freshness_hours=settings.cache_freshness_hours,
    )

    from backend_trustcheck.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
