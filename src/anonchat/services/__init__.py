"""Business logic services for the AnonChat auth service."""

from .credentials import derive_credential, identity_email
from .identity import IdentityProvider, IdentitySession, LocalIdentityProvider
from .nonce_registry import InMemoryNonceRegistry, NonceRegistry
from .wallet_auth import AuthResult, WalletAuthConfig, WalletAuthenticator

__all__ = [
    "AuthResult",
    "IdentityProvider",
    "IdentitySession",
    "InMemoryNonceRegistry",
    "LocalIdentityProvider",
    "NonceRegistry",
    "WalletAuthConfig",
    "WalletAuthenticator",
    "derive_credential",
    "identity_email",
]
