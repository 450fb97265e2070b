# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-session-signing-key")
os.environ.setdefault("WALLET_AUTH_SECRET", "test-wallet-auth-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("IDENTITY_PROVIDER", "local")

from anonchat.api.v1.dependencies import get_identity_provider_dep, get_nonce_registry_dep
from anonchat.core.wallet import encode_account_id
from anonchat.db.session import Base
from anonchat.main import app as fastapi_app
from anonchat.services.identity import LocalIdentityProvider
from anonchat.services.nonce_registry import InMemoryNonceRegistry

TEST_DB_URL = "sqlite://"
TEST_NONCE_TTL_SECONDS = 300


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Wallet:
    """Ed25519 key pair presented as a Stellar account id."""

    def __init__(self) -> None:
        self.signing_key = SigningKey.generate()
        self.address = encode_account_id(bytes(self.signing_key.verify_key))

    def sign(self, message: str) -> str:
        return self.signing_key.sign(message.encode("utf-8")).signature.hex()


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def identity_provider(session_factory: Callable[[], Session]) -> LocalIdentityProvider:
    return LocalIdentityProvider(session_factory, secret_key="test-session-signing-key")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry(clock: FakeClock) -> InMemoryNonceRegistry:
    return InMemoryNonceRegistry(ttl_seconds=TEST_NONCE_TTL_SECONDS, clock=clock)


@pytest.fixture()
def wallet() -> Wallet:
    return Wallet()


@pytest.fixture()
def other_wallet() -> Wallet:
    return Wallet()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def override_dependencies(
    app: FastAPI,
    registry: InMemoryNonceRegistry,
    identity_provider: LocalIdentityProvider,
) -> Iterator[None]:
    overrides: dict[Callable[..., Any], Callable[[], Any]] = {
        get_nonce_registry_dep: lambda: registry,
        get_identity_provider_dep: lambda: identity_provider,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI, override_dependencies: None) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
