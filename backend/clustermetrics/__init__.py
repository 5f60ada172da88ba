"""Cluster CPU/memory metrics recorder."""

__version__ = "1.0.0"
