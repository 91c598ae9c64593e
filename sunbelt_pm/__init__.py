"""Sunbelt PM: project tracking data, calendar aggregation and document exports."""

__version__ = "0.4.0"
