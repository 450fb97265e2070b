"""SQLAlchemy models for the AnonChat auth service."""

from .wallet_user import WalletUser

__all__ = ["WalletUser"]
