# tests/test_wallet_auth.py
"""Tests for the wallet sign-in flow."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from anonchat.services.credentials import derive_credential
from anonchat.services.errors import (
    AuthStage,
    CredentialSecretMissingError,
    IdentityNotFoundError,
    IdentityProviderError,
    IdentityResolutionError,
    InvalidAuthRequestError,
    NonceNotFoundError,
    SignatureRejectedError,
)
from anonchat.services.identity import IdentitySession
from anonchat.services.wallet_auth import WalletAuthConfig, WalletAuthenticator

SECRET = "flow-secret"
SESSION = IdentitySession(session={"access_token": "token"}, user={"id": "user-1"})
MIXED_CASE_WALLET = "GaBcDeFgHiJkLmNoPqRsTuVwXyZaBcDeFgHiJkLmNoPqRsTuVwXyZaBc"


@pytest.fixture()
def provider() -> AsyncMock:
    provider = AsyncMock()
    provider.sign_in.return_value = SESSION
    provider.create_identity.return_value = SESSION
    return provider


@pytest.fixture()
def authenticator(registry, provider) -> WalletAuthenticator:
    return WalletAuthenticator(registry, provider, WalletAuthConfig(secret=SECRET))


@pytest.mark.asyncio
async def test_existing_identity_signs_in(authenticator, provider, wallet) -> None:
    nonce = authenticator.request_nonce(wallet.address)
    result = await authenticator.authenticate(wallet.address, wallet.sign(nonce))

    assert result.is_new_user is False
    assert result.identity_key == wallet.address
    assert result.session == SESSION.session
    assert result.user == SESSION.user
    assert result.stage is AuthStage.SESSION_ISSUED
    provider.create_identity.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_identity_is_created(authenticator, provider, wallet) -> None:
    provider.sign_in.side_effect = IdentityNotFoundError("missing")
    nonce = authenticator.request_nonce(wallet.address)
    result = await authenticator.authenticate(wallet.address, wallet.sign(nonce))

    assert result.is_new_user is True
    email = f"{wallet.address.lower()}@wallet.anonchat.local"
    credential = derive_credential(wallet.address, SECRET)
    provider.sign_in.assert_awaited_once_with(email, credential)
    provider.create_identity.assert_awaited_once_with(
        email,
        credential,
        {
            "wallet_address": wallet.address,
            "username": f"{wallet.address[:4]}…{wallet.address[-4:]}",
        },
    )


@pytest.mark.asyncio
async def test_missing_wallet_rejected_before_registry(registry, provider) -> None:
    registry = MagicMock(wraps=registry)
    authenticator = WalletAuthenticator(registry, provider, WalletAuthConfig(secret=SECRET))

    with pytest.raises(InvalidAuthRequestError) as excinfo:
        await authenticator.authenticate(None, "ab" * 64)

    assert excinfo.value.public_message == "identityKey is required"
    assert excinfo.value.status_code == 400
    registry.consume.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("signature", [None, "", "   ", 123])
async def test_missing_signature_does_not_burn_nonce(
    authenticator, registry, wallet, signature
) -> None:
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(InvalidAuthRequestError) as excinfo:
        await authenticator.authenticate(wallet.address, signature)

    assert excinfo.value.public_message == "signature is required"
    assert registry.consume(wallet.address) == nonce


@pytest.mark.asyncio
async def test_malformed_wallet_rejected(authenticator) -> None:
    with pytest.raises(InvalidAuthRequestError) as excinfo:
        await authenticator.authenticate("GSHORT", "ab" * 64)
    assert excinfo.value.public_message == "Invalid Stellar wallet address"


def test_request_nonce_validates_wallet(authenticator, registry) -> None:
    with pytest.raises(InvalidAuthRequestError):
        authenticator.request_nonce("not-a-wallet")
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_without_nonce_is_unauthorized(authenticator, provider, wallet) -> None:
    with pytest.raises(NonceNotFoundError) as excinfo:
        await authenticator.authenticate(wallet.address, wallet.sign("anything"))

    assert excinfo.value.status_code == 401
    assert excinfo.value.stage is AuthStage.NONCE_CONSUMED
    provider.sign_in.assert_not_called()


@pytest.mark.asyncio
async def test_bad_signature_burns_nonce(authenticator, registry, provider, wallet, other_wallet) -> None:
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(SignatureRejectedError) as excinfo:
        await authenticator.authenticate(wallet.address, other_wallet.sign(nonce))
    assert excinfo.value.public_message == (
        "Signature verification failed. Wallet ownership not proved."
    )

    # The correct signature no longer helps: the nonce was consumed.
    with pytest.raises(NonceNotFoundError):
        await authenticator.authenticate(wallet.address, wallet.sign(nonce))
    assert len(registry) == 0
    provider.sign_in.assert_not_called()


@pytest.mark.asyncio
async def test_verifier_receives_consumed_nonce(registry, provider) -> None:
    verifier = MagicMock(return_value=True)
    authenticator = WalletAuthenticator(
        registry, provider, WalletAuthConfig(secret=SECRET), verifier=verifier
    )
    nonce = authenticator.request_nonce(MIXED_CASE_WALLET)

    await authenticator.authenticate(MIXED_CASE_WALLET, "deadbeef")

    verifier.assert_called_once_with(MIXED_CASE_WALLET, nonce, "deadbeef")


@pytest.mark.asyncio
async def test_email_lowercased_but_credential_keeps_case(registry, provider) -> None:
    authenticator = WalletAuthenticator(
        registry,
        provider,
        WalletAuthConfig(secret=SECRET),
        verifier=lambda *_: True,
    )
    authenticator.request_nonce(MIXED_CASE_WALLET)

    result = await authenticator.authenticate(MIXED_CASE_WALLET, "deadbeef")

    email, credential = provider.sign_in.await_args.args
    assert email == f"{MIXED_CASE_WALLET.lower()}@wallet.anonchat.local"
    assert credential == derive_credential(MIXED_CASE_WALLET, SECRET)
    assert credential != derive_credential(MIXED_CASE_WALLET.lower(), SECRET)
    assert result.identity_key == MIXED_CASE_WALLET


@pytest.mark.asyncio
async def test_custom_email_domain(registry, provider, wallet) -> None:
    authenticator = WalletAuthenticator(
        registry, provider, WalletAuthConfig(secret=SECRET, email_domain="chat.test")
    )
    nonce = authenticator.request_nonce(wallet.address)
    await authenticator.authenticate(wallet.address, wallet.sign(nonce))

    email, _ = provider.sign_in.await_args.args
    assert email == f"{wallet.address.lower()}@chat.test"


@pytest.mark.asyncio
async def test_missing_secret_is_internal_error(registry, provider, wallet) -> None:
    authenticator = WalletAuthenticator(registry, provider, WalletAuthConfig(secret=None))
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(CredentialSecretMissingError) as excinfo:
        await authenticator.authenticate(wallet.address, wallet.sign(nonce))

    assert excinfo.value.status_code == 500
    provider.sign_in.assert_not_called()


@pytest.mark.asyncio
async def test_provider_rejection_is_unauthorized(authenticator, provider, wallet) -> None:
    provider.sign_in.side_effect = IdentityProviderError("Invalid login credentials")
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(IdentityResolutionError) as excinfo:
        await authenticator.authenticate(wallet.address, wallet.sign(nonce))

    assert excinfo.value.status_code == 401
    assert excinfo.value.public_message == "Authentication failed. Please try again."
    provider.create_identity.assert_not_called()


@pytest.mark.asyncio
async def test_creation_failure_is_unauthorized(authenticator, provider, wallet) -> None:
    provider.sign_in.side_effect = IdentityNotFoundError("missing")
    provider.create_identity.side_effect = IdentityProviderError("User already registered")
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(IdentityResolutionError):
        await authenticator.authenticate(wallet.address, wallet.sign(nonce))


@pytest.mark.asyncio
async def test_unexpected_provider_error_propagates(authenticator, provider, wallet) -> None:
    provider.sign_in.side_effect = RuntimeError("connection pool exhausted")
    nonce = authenticator.request_nonce(wallet.address)

    with pytest.raises(RuntimeError):
        await authenticator.authenticate(wallet.address, wallet.sign(nonce))
