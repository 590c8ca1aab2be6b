"""HTTP collection adapters."""

from snapstats.adapters.http.collector import Collector, HttpFetcher

__all__ = ["Collector", "HttpFetcher"]
