"""LifeLine HTTP API."""
