"""HTTP API for the Bellyfed rankings service."""
