"""Configuration, credential reconciliation and the command line interface."""
