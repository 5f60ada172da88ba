#!/usr/bin/env python3
"""
Cluster Metrics Recorder
Starts the FastAPI server.
"""

import uvicorn
from dotenv import load_dotenv

# Load env vars from .env for local/dev runs.
load_dotenv()

from clustermetrics.config import get_settings
from clustermetrics.core.logging import setup_logging

settings = get_settings()

# Use the application's logging setup instead of uvicorn's default log_config
setup_logging(settings)

if __name__ == "__main__":
    uvicorn.run(
        "clustermetrics.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_debug,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
