"""Availability and booking scheduling engine for a coaching marketplace."""

__version__ = "1.0.0"
