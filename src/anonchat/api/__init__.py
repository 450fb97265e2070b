"""HTTP API for the AnonChat auth service."""
