"""Slash command parsing and dispatch."""
