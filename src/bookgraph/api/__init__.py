"""HTTP API for BookGraph."""
