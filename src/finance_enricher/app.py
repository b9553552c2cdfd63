from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from finance_enricher.api.routes import enrichment, health
from finance_enricher.client import EnrichmentClient
from finance_enricher.core import settings
from finance_enricher.core.configuration import EnrichmentConfig
from finance_enricher.errors import ConfigurationError
from finance_enricher.logger import get_logger, setup_logging

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        try:
            app.state.client = EnrichmentClient(EnrichmentConfig.from_env())
            app.state.config_error = None
        except ConfigurationError as exc:
            # AI routes report the error with a 503 until the configuration is fixed.
            logger.error("AI enrichment disabled: %s", exc)
            app.state.client = None
            app.state.config_error = exc

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Finance Enricher", lifespan=lifespan)
    app.include_router(health.router)
    app.include_router(enrichment.router)
    return app


app = create_app()
