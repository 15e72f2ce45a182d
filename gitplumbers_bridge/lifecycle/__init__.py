"""Create and close operations mirrored between GitHub and the store."""
