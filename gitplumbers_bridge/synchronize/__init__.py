"""Reconciliation of external GitHub issues with tracked issue records."""
