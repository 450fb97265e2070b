"""Wallet signature sign-in flow.

A sign-in runs through a fixed sequence of states and halts at the first
failed transition:

    START -> INPUT_VALIDATED -> NONCE_CONSUMED -> SIGNATURE_VERIFIED
          -> CREDENTIAL_DERIVED -> IDENTITY_RESOLVED -> SESSION_ISSUED

Input is validated before the nonce registry is touched, so a malformed
request cannot burn a live challenge. The challenge is consumed before the
signature is checked and is never put back, so a captured request can succeed
at most once even when replayed concurrently.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from anonchat.core.security import verify_wallet_signature
from anonchat.core.settings import settings
from anonchat.core.wallet import display_label, short_address, validate_wallet_address
from anonchat.services.credentials import derive_credential, identity_email
from anonchat.services.errors import (
    AuthStage,
    IdentityNotFoundError,
    IdentityProviderError,
    IdentityResolutionError,
    InvalidAuthRequestError,
    NonceNotFoundError,
    SignatureRejectedError,
)
from anonchat.services.identity import IdentityProvider, IdentitySession
from anonchat.services.nonce_registry import NonceRegistry

logger = logging.getLogger(__name__)

SignatureVerifier = Callable[[str, str, str], bool]


@dataclass(frozen=True)
class WalletAuthConfig:
    """Configuration injected into the sign-in flow."""

    secret: str | None
    email_domain: str = "wallet.anonchat.local"


def load_wallet_auth_config() -> WalletAuthConfig:
    """Build configuration object from global settings."""
    return WalletAuthConfig(
        secret=settings.wallet_auth_secret or None,
        email_domain=settings.identity_email_domain,
    )


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful sign-in."""

    session: dict[str, Any] | None
    user: dict[str, Any]
    identity_key: str
    is_new_user: bool
    stage: AuthStage = AuthStage.SESSION_ISSUED


class WalletAuthenticator:
    """Issues challenges and turns signed challenges into sessions."""

    def __init__(
        self,
        registry: NonceRegistry,
        identity_provider: IdentityProvider,
        config: WalletAuthConfig,
        *,
        verifier: SignatureVerifier = verify_wallet_signature,
    ) -> None:
        self.registry = registry
        self.identity_provider = identity_provider
        self.config = config
        self._verify = verifier

    @staticmethod
    def _validate_address(identity_key: Any) -> str:
        error = validate_wallet_address(identity_key)
        if error:
            raise InvalidAuthRequestError(error)
        return identity_key

    def request_nonce(self, identity_key: Any) -> str:
        """Issue a fresh challenge for the wallet, replacing any earlier one."""
        wallet_address = self._validate_address(identity_key)
        nonce = self.registry.issue(wallet_address)
        logger.info("Issued nonce for wallet %s", short_address(wallet_address))
        return nonce

    async def authenticate(self, identity_key: Any, signature: Any) -> AuthResult:
        """Run the sign-in flow for a signed challenge.

        Raises:
            InvalidAuthRequestError: The address or signature field is unusable.
            NonceNotFoundError: No live challenge existed for the wallet.
            SignatureRejectedError: The signature does not match the challenge.
            CredentialSecretMissingError: The derivation secret is not configured.
            IdentityResolutionError: The identity provider rejected the wallet.
        """
        wallet_address = self._validate_address(identity_key)
        if not isinstance(signature, str) or not signature.strip():
            raise InvalidAuthRequestError("signature is required")

        nonce = self.registry.consume(wallet_address)
        if nonce is None:
            logger.warning(
                "Nonce not found or expired for wallet %s", short_address(wallet_address)
            )
            raise NonceNotFoundError()

        if not self._verify(wallet_address, nonce, signature):
            logger.warning(
                "Signature verification failed for wallet %s", short_address(wallet_address)
            )
            raise SignatureRejectedError()

        credential = derive_credential(wallet_address, self.config.secret)
        email = identity_email(wallet_address, self.config.email_domain)

        identity, created = await self._resolve_identity(wallet_address, email, credential)
        return AuthResult(
            session=identity.session,
            user=identity.user,
            identity_key=wallet_address,
            is_new_user=created,
        )

    async def _resolve_identity(
        self,
        wallet_address: str,
        email: str,
        credential: str,
    ) -> tuple[IdentitySession, bool]:
        """Sign in, or create the identity the first time a wallet is seen."""
        try:
            identity = await self.identity_provider.sign_in(email, credential)
        except IdentityNotFoundError:
            logger.info("Creating new identity for wallet %s", short_address(wallet_address))
        except IdentityProviderError as err:
            logger.warning(
                "Sign-in rejected for wallet %s: %s", short_address(wallet_address), err
            )
            raise IdentityResolutionError(str(err)) from err
        else:
            logger.info("Signed in wallet %s", short_address(wallet_address))
            return identity, False

        metadata = {
            "wallet_address": wallet_address,
            "username": display_label(wallet_address),
        }
        try:
            identity = await self.identity_provider.create_identity(email, credential, metadata)
        except IdentityProviderError as err:
            logger.error(
                "Identity creation failed for wallet %s: %s", short_address(wallet_address), err
            )
            raise IdentityResolutionError(str(err)) from err
        logger.info("Created identity for wallet %s", short_address(wallet_address))
        return identity, True
