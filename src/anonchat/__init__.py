"""Wallet signature authentication service for AnonChat."""

__version__ = "0.1.0"
