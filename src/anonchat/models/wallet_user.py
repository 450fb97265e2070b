"""SQLAlchemy model for wallet-backed identities."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from anonchat.db.session import Base
from anonchat.db.time import utcnow


def _new_user_id() -> str:
    return str(uuid.uuid4())


class WalletUser(Base):
    """Identity record keyed by the lowercased wallet login email."""

    __tablename__ = "wallet_user"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_user_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    credential_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    wallet_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def to_public_dict(self) -> dict[str, object]:
        """Return the user bundle handed back to clients."""
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": {
                "wallet_address": self.wallet_address,
                "username": self.username,
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
