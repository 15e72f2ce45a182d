"""Pydantic models for tracked issues, requests and events."""
