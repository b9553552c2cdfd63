import os

import uvicorn

from finance_enricher.app import app
from finance_enricher.logger import get_logging_config


def run() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host=host, port=port, log_config=get_logging_config())


if __name__ == "__main__":
    run()
