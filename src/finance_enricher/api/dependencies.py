from fastapi import HTTPException, Request

from finance_enricher.client import EnrichmentClient
from finance_enricher.errors import ConfigurationError


def get_client(request: Request) -> EnrichmentClient:
    client = getattr(request.app.state, "client", None)
    if client:
        return client

    error: ConfigurationError | None = getattr(request.app.state, "config_error", None)
    detail = error.to_dict() if error else {"error": "configuration", "message": "Service not initialized"}
    raise HTTPException(status_code=503, detail=detail)
