"""Tickstat: streaming technical-analysis indicators for tick-by-tick hosts."""

__version__ = "1.0.0"
