# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/credits/__init__.py

Submódulo del ledger de créditos.

Contiene:
- Modelos ORM: CreditAccount, CreditTransaction
- Repositorios: CreditAccountRepository, CreditTransactionRepository
- Servicios: CreditLedger, AccountService
- Enums: CreditTxReason, CreditAccountStatus

Autor: MessCredit
Fecha: 2026-03-02
"""

from .models import (
    CreditAccount,
    CreditTransaction,
)
from .enums import (
    CreditTxReason,
    CreditAccountStatus,
)
from .repositories import (
    CreditAccountRepository,
    CreditTransactionRepository,
)
from .services import (
    CreditLedger,
    AccountService,
    PostResult,
    BalanceAudit,
)

__all__ = [
    # Models
    "CreditAccount",
    "CreditTransaction",
    # Enums
    "CreditTxReason",
    "CreditAccountStatus",
    # Repositories
    "CreditAccountRepository",
    "CreditTransactionRepository",
    # Services
    "CreditLedger",
    "AccountService",
    "PostResult",
    "BalanceAudit",
]
