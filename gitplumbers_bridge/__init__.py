"""Bridges GitHub App installations with the gitPlumbers support-request store."""

__version__ = "0.1.0"
