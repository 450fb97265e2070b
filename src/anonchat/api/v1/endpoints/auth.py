"""Wallet authentication endpoints for the AnonChat API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from anonchat.api.v1.dependencies import BearerDep, IdentityProviderDep, WalletAuthenticatorDep
from anonchat.core.wallet import short_address
from anonchat.schemas.auth import (
    ErrorResponse,
    NonceRequest,
    NonceResponse,
    WalletLoginRequest,
    WalletLoginResponse,
    WhoAmIResponse,
)
from anonchat.services.errors import IdentityProviderError, WalletAuthError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _auth_error(err: WalletAuthError) -> JSONResponse:
    if err.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Wallet auth halted before %s: %s", err.stage.value, err)
    else:
        logger.warning("Wallet auth rejected before %s: %s", err.stage.value, err)
    return _error(err.status_code, err.public_message)


@router.post(
    "/nonce",
    summary="Issue a one-time challenge for a wallet",
    response_model=NonceResponse,
    responses=_ERROR_RESPONSES,
)
async def issue_nonce(
    payload: NonceRequest,
    authenticator: WalletAuthenticatorDep,
) -> NonceResponse | JSONResponse:
    """Return a nonce the client must sign with its wallet key."""
    try:
        nonce = authenticator.request_nonce(payload.identity_key)
    except WalletAuthError as err:
        return _auth_error(err)
    except Exception:
        logger.exception("Failed to generate nonce")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate nonce")
    return NonceResponse(nonce=nonce)


@router.post(
    "/wallet-login",
    summary="Authenticate with a signed wallet challenge",
    response_model=WalletLoginResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_201_CREATED: {"model": WalletLoginResponse},
    },
)
async def wallet_login(
    payload: WalletLoginRequest,
    response: Response,
    authenticator: WalletAuthenticatorDep,
) -> WalletLoginResponse | JSONResponse:
    """Verify the signed challenge and sign the wallet in, creating it if new."""
    try:
        result = await authenticator.authenticate(payload.identity_key, payload.signature)
    except WalletAuthError as err:
        return _auth_error(err)
    except Exception:
        logger.exception("Unexpected error during wallet sign-in")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    if result.is_new_user:
        response.status_code = status.HTTP_201_CREATED
    logger.info(
        "Wallet %s authenticated (new user: %s)",
        short_address(result.identity_key),
        result.is_new_user,
    )
    return WalletLoginResponse(
        session=result.session,
        user=result.user,
        identity_key=result.identity_key,
        is_new_user=result.is_new_user,
    )


@router.get(
    "/whoami",
    summary="Return the identity behind a session token",
    response_model=WhoAmIResponse,
    responses=_ERROR_RESPONSES,
)
async def whoami(
    credentials: BearerDep,
    identity_provider: IdentityProviderDep,
) -> WhoAmIResponse | JSONResponse:
    """Resolve the bearer token to its user record."""
    if credentials is None:
        return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    try:
        user = await identity_provider.get_user(credentials.credentials)
    except IdentityProviderError as err:
        logger.warning("Rejected session token: %s", err)
        return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    except Exception:
        logger.exception("Failed to fetch user")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch user")
    return WhoAmIResponse(user=user)
