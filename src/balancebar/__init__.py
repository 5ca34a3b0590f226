"""Periodically run a balance command and publish the latest result."""

__version__ = "0.1.0"
