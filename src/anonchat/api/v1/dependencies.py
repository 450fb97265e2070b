"""Shared API dependencies for wallet authentication."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from anonchat.services.identity import IdentityProvider, get_identity_provider
from anonchat.services.nonce_registry import NonceRegistry, get_nonce_registry
from anonchat.services.wallet_auth import WalletAuthenticator, load_wallet_auth_config

# Missing tokens are reported by the endpoint so the error body stays uniform.
bearer_scheme = HTTPBearer(auto_error=False)


def get_nonce_registry_dep() -> NonceRegistry:
    return get_nonce_registry()


def get_identity_provider_dep() -> IdentityProvider:
    return get_identity_provider()


NonceRegistryDep = Annotated[NonceRegistry, Depends(get_nonce_registry_dep)]
IdentityProviderDep = Annotated[IdentityProvider, Depends(get_identity_provider_dep)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_wallet_authenticator(
    registry: NonceRegistryDep,
    identity_provider: IdentityProviderDep,
) -> WalletAuthenticator:
    """Assemble the sign-in flow for one request."""
    return WalletAuthenticator(registry, identity_provider, load_wallet_auth_config())


WalletAuthenticatorDep = Annotated[WalletAuthenticator, Depends(get_wallet_authenticator)]
