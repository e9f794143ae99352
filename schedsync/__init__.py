"""Reschedule GitHub Project items with an external task scheduler."""

__version__ = "0.1.0"
