"""Identity provider interface and the built-in SQLAlchemy implementation."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from anonchat.core.security import hash_credential
from anonchat.core.settings import settings
from anonchat.db.time import utcnow
from anonchat.models import WalletUser
from anonchat.services.errors import IdentityNotFoundError, IdentityProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentitySession:
    """Session and user bundles returned by an identity provider.

    Both payloads are opaque to the sign-in flow and passed through as-is.
    ``session`` is None when the provider created the identity but withheld a
    session (for example pending email confirmation).
    """

    session: dict[str, Any] | None
    user: dict[str, Any]


class IdentityProvider(Protocol):
    """Creates or fetches identities and issues sessions for them."""

    async def sign_in(self, email: str, credential: str) -> IdentitySession:
        ...

    async def create_identity(
        self,
        email: str,
        credential: str,
        metadata: Mapping[str, str],
    ) -> IdentitySession:
        ...

    async def get_user(self, access_token: str) -> dict[str, Any]:
        ...


class LocalIdentityProvider:
    """Identity provider backed by the local database and HS256 JWTs."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        *,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ) -> None:
        if session_factory is None:
            from anonchat.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self._secret_key = secret_key or settings.secret_key
        self._algorithm = algorithm or settings.jwt_algorithm
        self._expire_minutes = expire_minutes or settings.access_token_expire_minutes

    def _issue_session(self, user: WalletUser) -> dict[str, Any]:
        expires = utcnow() + timedelta(minutes=self._expire_minutes)
        claims: dict[str, object] = {
            "sub": user.id,
            "email": user.email,
            "wallet_address": user.wallet_address,
            "exp": expires,
        }
        access_token: str = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": self._expire_minutes * 60,
            "expires_at": int(expires.timestamp()),
            "refresh_token": None,
        }

    def _session_for(self, user: WalletUser) -> IdentitySession:
        return IdentitySession(session=self._issue_session(user), user=user.to_public_dict())

    async def sign_in(self, email: str, credential: str) -> IdentitySession:
        with self._session_factory() as db:
            user = db.query(WalletUser).filter(WalletUser.email == email).first()
            if user is None:
                raise IdentityNotFoundError(f"No identity registered for {email}")
            if not hmac.compare_digest(user.credential_hash, hash_credential(credential)):
                raise IdentityProviderError("Invalid login credentials")
            return self._session_for(user)

    async def create_identity(
        self,
        email: str,
        credential: str,
        metadata: Mapping[str, str],
    ) -> IdentitySession:
        with self._session_factory() as db:
            user = WalletUser(
                email=email,
                credential_hash=hash_credential(credential),
                wallet_address=metadata.get("wallet_address"),
                username=metadata.get("username"),
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as err:
                db.rollback()
                raise IdentityProviderError("User already registered") from err
            db.refresh(user)
            logger.info("Created identity %s", user.id)
            return self._session_for(user)

    async def get_user(self, access_token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(access_token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as err:
            raise IdentityProviderError("Could not validate credentials") from err

        subject = payload.get("sub")
        if subject is None:
            raise IdentityProviderError("Could not validate credentials")

        with self._session_factory() as db:
            user = db.get(WalletUser, subject)
            if user is None:
                raise IdentityNotFoundError("User not found")
            return user.to_public_dict()


def get_identity_provider() -> IdentityProvider:
    """Return the identity provider selected in settings."""
    if settings.identity_provider == "supabase":
        from anonchat.services.supabase import get_supabase_provider

        return get_supabase_provider()
    return _LOCAL_PROVIDER


_LOCAL_PROVIDER = LocalIdentityProvider()
