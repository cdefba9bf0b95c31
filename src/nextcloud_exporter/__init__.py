"""Prometheus exporter for Nextcloud serverinfo with rate-limit-aware caching."""

__version__ = "0.3.0"
