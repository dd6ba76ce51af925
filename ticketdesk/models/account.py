"""Accounts and the hashed API keys they authenticate with."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Account(Base):
    __tablename__ = "accounts"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    sid = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(Text, nullable=False)

    api_keys = relationship("ApiKey", back_populates="account", order_by="ApiKey.id")

    @property
    def active_keys(self) -> list["ApiKey"]:
        return [key for key in self.api_keys if key.is_active]


class ApiKey(Base):
    """One bcrypt-hashed secret. Revoked keys are deactivated, never removed."""

    __tablename__ = "api_keys"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    key_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Text, nullable=False)

    account = relationship("Account", back_populates="api_keys")


__all__ = ["Account", "ApiKey"]
