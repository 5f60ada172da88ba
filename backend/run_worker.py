#!/usr/bin/env python3
"""
Cluster Metrics Collector Worker

Run the collection loop in a dedicated process.

Usage:
  python run_worker.py

Tip:
  - In the web API process, set `COLLECTOR_ENABLED=false`
  - Both processes must point at the same DATABASE_URL
"""

import asyncio

from dotenv import load_dotenv

# Load env vars from .env for local/dev runs.
load_dotenv()

from clustermetrics.core.logging import setup_logging

setup_logging()

from clustermetrics.background_worker import run_background_worker


if __name__ == "__main__":
    asyncio.run(run_background_worker())
