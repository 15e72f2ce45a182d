"""GitHub App authentication and the token-bound issue tracker client."""
