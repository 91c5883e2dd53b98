"""Caching proxy for the newsapi.org aggregation API."""

__version__ = "0.1.0"
