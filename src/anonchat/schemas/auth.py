"""Wallet authentication Pydantic schemas."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

_IDENTITY_KEY_ALIASES = AliasChoices("identityKey", "walletAddress")


class NonceRequest(BaseModel):
    """Request for a one-time challenge to sign."""

    identity_key: str | None = Field(
        None,
        validation_alias=_IDENTITY_KEY_ALIASES,
        description="Stellar account id (56 characters, starts with 'G')",
    )


class NonceResponse(BaseModel):
    """Challenge the wallet must sign within the nonce TTL."""

    nonce: str = Field(..., description="Challenge in the form '<prefix>:<ms>:<uuid>'")


class WalletLoginRequest(BaseModel):
    """Signed challenge submitted to prove wallet ownership."""

    identity_key: str | None = Field(
        None,
        validation_alias=_IDENTITY_KEY_ALIASES,
        description="Stellar account id that signed the challenge",
    )
    signature: str | None = Field(
        None,
        description="Hex-encoded Ed25519 signature over the UTF-8 challenge",
    )


class WalletLoginResponse(BaseModel):
    """Session returned after a successful wallet sign-in."""

    session: dict[str, Any] | None = Field(..., description="Identity provider session bundle")
    user: dict[str, Any] = Field(..., description="Identity provider user record")
    identity_key: str = Field(..., alias="identityKey", description="Authenticated wallet")
    is_new_user: bool = Field(..., alias="isNewUser", description="True on first sign-in")

    model_config = ConfigDict(populate_by_name=True)


class WhoAmIResponse(BaseModel):
    """Identity behind the presented session token."""

    user: dict[str, Any]


class ErrorResponse(BaseModel):
    """Error body returned by every auth endpoint."""

    error: str = Field(..., description="Human-readable error message")
