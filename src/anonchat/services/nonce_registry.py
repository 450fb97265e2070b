"""One-time challenge storage for wallet sign-in."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from anonchat.core.settings import settings


@dataclass(frozen=True)
class Challenge:
    """An outstanding nonce and the epoch second after which it is dead."""

    value: str
    expires_at: float


class NonceRegistry(Protocol):
    """Keyed store holding at most one outstanding challenge per wallet."""

    def issue(self, wallet_address: str) -> str:
        ...

    def consume(self, wallet_address: str) -> str | None:
        ...


class InMemoryNonceRegistry:
    """Mutex-guarded challenge map for single-instance deployments.

    ``issue`` replaces any earlier challenge for the wallet. ``consume`` removes
    the entry before looking at its expiry, so a challenge can be read back at
    most once. Missing, consumed and expired challenges all come back as
    ``None``. Expired entries are never swept; they are dropped by the next
    ``consume`` or overwritten by the next ``issue``.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        *,
        prefix: str = "anonchat",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
        self._clock = clock
        self._entries: dict[str, Challenge] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _new_value(self, issued_at: float) -> str:
        return f"{self.prefix}:{int(issued_at * 1000)}:{uuid.uuid4()}"

    def issue(self, wallet_address: str) -> str:
        """Store and return a fresh challenge for ``wallet_address``."""
        issued_at = self._clock()
        challenge = Challenge(
            value=self._new_value(issued_at),
            expires_at=issued_at + self.ttl_seconds,
        )
        with self._lock:
            self._entries[wallet_address] = challenge
        return challenge.value

    def consume(self, wallet_address: str) -> str | None:
        """Remove and return the wallet's challenge if it has not expired."""
        with self._lock:
            challenge = self._entries.pop(wallet_address, None)
        if challenge is None:
            return None
        if self._clock() > challenge.expires_at:
            return None
        return challenge.value


_REGISTRY = InMemoryNonceRegistry(
    ttl_seconds=settings.nonce_ttl_seconds,
    prefix=settings.nonce_prefix,
)


def get_nonce_registry() -> NonceRegistry:
    """Return the process-wide nonce registry."""
    return _REGISTRY
