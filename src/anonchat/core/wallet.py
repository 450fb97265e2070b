"""Stellar wallet address helpers.

Stellar account ids are StrKey strings: base32 over a version byte, the raw
32 byte Ed25519 public key and a CRC16-XModem checksum (little-endian).
"""

from __future__ import annotations

import base64
import binascii
import struct
from typing import Any

ACCOUNT_ID_LENGTH = 56
ACCOUNT_ID_PREFIX = "G"
PUBKEY_LENGTH_BYTES = 32

_VERSION_BYTE_ACCOUNT_ID = 6 << 3
_DECODED_LENGTH = 1 + PUBKEY_LENGTH_BYTES + 2


def _checksum(payload: bytes) -> bytes:
    return struct.pack("<H", binascii.crc_hqx(payload, 0))


def validate_wallet_address(wallet_address: Any) -> str | None:
    """Return an error message for an unusable wallet address, or None if valid."""
    if not wallet_address or not isinstance(wallet_address, str):
        return "identityKey is required"
    if not wallet_address.strip():
        return "identityKey is required"
    if len(wallet_address) != ACCOUNT_ID_LENGTH or not wallet_address.startswith(
        ACCOUNT_ID_PREFIX
    ):
        return "Invalid Stellar wallet address"
    return None


def decode_account_id(wallet_address: str) -> bytes:
    """Decode a Stellar account id into raw Ed25519 public key bytes.

    Raises:
        ValueError: If the address is not a well-formed account id.
    """
    if len(wallet_address) != ACCOUNT_ID_LENGTH:
        raise ValueError("Account ids must be 56 characters")
    try:
        decoded = base64.b32decode(wallet_address)
    except binascii.Error as err:
        raise ValueError(f"Invalid base32 encoding: {err}") from err

    if len(decoded) != _DECODED_LENGTH:
        raise ValueError("Invalid account id payload size")
    if decoded[0] != _VERSION_BYTE_ACCOUNT_ID:
        raise ValueError("Address is not an account id")

    payload, checksum = decoded[:-2], decoded[-2:]
    if _checksum(payload) != checksum:
        raise ValueError("Account id checksum mismatch")
    return payload[1:]


def encode_account_id(public_key: bytes) -> str:
    """Encode raw Ed25519 public key bytes as a Stellar account id."""
    if len(public_key) != PUBKEY_LENGTH_BYTES:
        raise ValueError("Ed25519 public keys must be 32 bytes")
    payload = bytes([_VERSION_BYTE_ACCOUNT_ID]) + public_key
    return base64.b32encode(payload + _checksum(payload)).decode()


def short_address(wallet_address: str) -> str:
    """Shorten an address for log lines."""
    return f"{wallet_address[:8]}..."


def display_label(wallet_address: str) -> str:
    """Return the short ``GABC…WXYZ`` label shown for a wallet."""
    return f"{wallet_address[:4]}…{wallet_address[-4:]}"
