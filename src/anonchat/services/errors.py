"""Exceptions raised by the wallet authentication services."""

from __future__ import annotations

from enum import Enum


class AuthStage(Enum):
    """States of the wallet sign-in flow, in the only order they can occur."""

    START = "start"
    INPUT_VALIDATED = "input_validated"
    NONCE_CONSUMED = "nonce_consumed"
    SIGNATURE_VERIFIED = "signature_verified"
    CREDENTIAL_DERIVED = "credential_derived"
    IDENTITY_RESOLVED = "identity_resolved"
    SESSION_ISSUED = "session_issued"


class WalletAuthError(RuntimeError):
    """Base exception for a sign-in attempt that must halt.

    ``stage`` is the state the flow failed to reach. ``public_message`` is the
    only text ever returned to the client.
    """

    status_code: int = 500
    public_message: str = "Internal server error"
    stage: AuthStage = AuthStage.START

    def __init__(self, detail: str | None = None, *, public_message: str | None = None) -> None:
        if public_message is not None:
            self.public_message = public_message
        super().__init__(detail or self.public_message)


class InvalidAuthRequestError(WalletAuthError):
    """Raised when a request is missing fields or carries a malformed address."""

    status_code = 400
    stage = AuthStage.INPUT_VALIDATED

    def __init__(self, message: str) -> None:
        super().__init__(message, public_message=message)


class NonceNotFoundError(WalletAuthError):
    """Raised when no live challenge exists for the wallet."""

    status_code = 401
    public_message = "Nonce not found or expired. Request a new nonce."
    stage = AuthStage.NONCE_CONSUMED


class SignatureRejectedError(WalletAuthError):
    """Raised when the signature does not prove ownership of the wallet."""

    status_code = 401
    public_message = "Signature verification failed. Wallet ownership not proved."
    stage = AuthStage.SIGNATURE_VERIFIED


class CredentialSecretMissingError(WalletAuthError):
    """Raised when the credential derivation secret is not configured."""

    status_code = 500
    stage = AuthStage.CREDENTIAL_DERIVED


class IdentityResolutionError(WalletAuthError):
    """Raised when the identity provider refuses both sign-in and creation."""

    status_code = 401
    public_message = "Authentication failed. Please try again."
    stage = AuthStage.IDENTITY_RESOLVED


class IdentityProviderError(RuntimeError):
    """Base exception raised for identity provider failures."""


class IdentityNotFoundError(IdentityProviderError):
    """Raised when the provider has no identity for the given login key."""
