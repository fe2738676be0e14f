# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/credits/models.py

Modelos ORM del ledger de créditos.

- CreditAccount: cuenta por comedor con saldo cacheado (denormalizado) y
  contador de versión para compare-and-swap.
- CreditTransaction: log inmutable de movimientos; el saldo es siempre
  la suma de sus deltas.

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    DateTime,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, JSONType, as_db_enum
from app.shared.utils.datetime_helpers import utcnow
from .enums import CreditAccountStatus, CreditTxReason


class CreditAccount(Base):
    """
    Cuenta de créditos de un comedor (tenant).

    Tabla: credit_accounts

    Columnas DB:
    - id: BIGSERIAL PRIMARY KEY
    - mess_id: VARCHAR(64) NOT NULL UNIQUE
    - balance: INTEGER NOT NULL DEFAULT 0 (cache de SUM(credit_transactions.delta))
    - version: INTEGER NOT NULL DEFAULT 0 (se incrementa en cada movimiento)
    - low_balance_threshold: INTEGER NOT NULL
    - auto_renewal: BOOLEAN NOT NULL DEFAULT true
    - billing_period: VARCHAR(16) NOT NULL
    - max_leave_days_per_cycle: INTEGER NULL (NULL = valor por defecto de la config)
    - status: credit_account_status NOT NULL DEFAULT 'suspended'
    """

    __tablename__ = "credit_accounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    mess_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    low_balance_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    auto_renewal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    billing_period: Mapped[str] = mapped_column(String(16), nullable=False, default="month")

    max_leave_days_per_cycle: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[CreditAccountStatus] = mapped_column(
        as_db_enum(CreditAccountStatus, name="credit_account_status"),
        nullable=False,
        default=CreditAccountStatus.SUSPENDED,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    @property
    def is_low_balance(self) -> bool:
        return self.balance < self.low_balance_threshold

    def __repr__(self) -> str:
        return (
            f"<CreditAccount id={self.id} mess={self.mess_id} balance={self.balance} "
            f"v={self.version} status={self.status}>"
        )


class CreditTransaction(Base):
    """
    Ledger inmutable de movimientos de créditos.

    Tabla: credit_transactions

    Constraints:
    - uq_credit_transactions_account_id: UNIQUE(account_id, reason, reference_id)
    - ck_credit_transactions_nonzero_delta: delta <> 0
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "reason", "reference_id"),
        CheckConstraint("delta <> 0", name="nonzero_delta"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("credit_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Denormalizado para reportes por tenant sin join
    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    delta: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[CreditTxReason] = mapped_column(
        as_db_enum(CreditTxReason, name="credit_tx_reason"),
        nullable=False,
    )

    reference_id: Mapped[str] = mapped_column(String(128), nullable=False)

    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Atributo Python 'tx_metadata' mapeado a columna DB 'metadata'
    tx_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    @property
    def is_credit(self) -> bool:
        return self.delta > 0

    def __repr__(self) -> str:
        return (
            f"<CreditTransaction id={self.id} account={self.account_id} "
            f"{self.reason}:{self.reference_id} delta={self.delta:+d} after={self.balance_after}>"
        )


__all__ = [
    "CreditAccount",
    "CreditTransaction",
]
