"""Signature utilities built on Ed25519 primitives."""
from __future__ import annotations

import binascii
import hashlib
import logging

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from anonchat.core.wallet import decode_account_id

logger = logging.getLogger(__name__)


def verify_wallet_signature(wallet_address: str, message: str, signature_hex: str) -> bool:
    """Verify that ``signature_hex`` was produced by the wallet's private key.

    Args:
        wallet_address: Stellar account id whose Ed25519 key signed the message.
        message: Text that was signed, as UTF-8 bytes, on the client.
        signature_hex: Hex-encoded 64-byte detached signature (any case).

    Returns:
        True if the signature is valid for ``message`` under the wallet key;
        False for every other outcome, including malformed input.
    """
    try:
        pubkey = VerifyKey(decode_account_id(wallet_address))
        signature = binascii.unhexlify(signature_hex)
        pubkey.verify(message.encode("utf-8"), signature)
        return True
    except (BadSignatureError, CryptoError, binascii.Error, ValueError, TypeError):
        return False
    except Exception:
        logger.debug("Unexpected error during signature verification", exc_info=True)
        return False


def hash_credential(credential: str) -> str:
    """Return a SHA-256 hash of the provided credential."""
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()
