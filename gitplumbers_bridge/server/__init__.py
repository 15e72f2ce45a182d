"""FastAPI webhook and RPC surface."""
