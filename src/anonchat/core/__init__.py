"""Core configuration and cryptographic helpers."""
