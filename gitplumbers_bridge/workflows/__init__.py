"""Orchestration entry points shared by the CLI and the HTTP server."""
