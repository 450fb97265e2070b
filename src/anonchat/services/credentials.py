"""Deterministic credentials for wallet identities.

The identity provider only understands email/password pairs, so each wallet
is mapped to a stable email-like login key and an HMAC-derived password.
Nothing here is stored; both values are recomputed on every sign-in.
"""

from __future__ import annotations

import hashlib
import hmac

from anonchat.services.errors import CredentialSecretMissingError

DEFAULT_EMAIL_DOMAIN = "wallet.anonchat.local"


def derive_credential(wallet_address: str, secret: str | None) -> str:
    """Return HMAC-SHA256(secret, wallet_address) as 64 hex characters.

    The wallet address is used exactly as presented. Changing its case changes
    the credential, and with it every account created from that address.

    Raises:
        CredentialSecretMissingError: If no secret is configured.
    """
    if not secret:
        raise CredentialSecretMissingError("WALLET_AUTH_SECRET is not set")
    return hmac.new(
        secret.encode("utf-8"),
        wallet_address.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def identity_email(wallet_address: str, domain: str = DEFAULT_EMAIL_DOMAIN) -> str:
    """Return the case-insensitive login key for a wallet."""
    return f"{wallet_address.lower()}@{domain}"
