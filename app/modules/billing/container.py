# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/container.py

Ensamblado de los componentes de facturación a partir de la
configuración explícita. create_app() construye una instancia y la
guarda en app.state.billing; las rutas la obtienen con get_billing_services.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.shared.config.settings_billing import BillingConfig
from app.modules.billing.catalog import CreditPurchaseCatalog
from app.modules.billing.credits import AccountService, CreditLedger
from app.modules.billing.cycles import BillingCycleProcessor
from app.modules.billing.leave import LeaveAdjustmentCalculator
from app.modules.billing.pricing import SlabService
from app.modules.billing.reports import BillingReports
from app.modules.billing.trial import FreeTrialManager
from app.modules.payments.services import PaymentGateway, ReconciliationService


@dataclass
class BillingServices:
    config: BillingConfig
    accounts: AccountService
    ledger: CreditLedger
    slabs: SlabService
    catalog: CreditPurchaseCatalog
    trials: FreeTrialManager
    leave: LeaveAdjustmentCalculator
    cycles: BillingCycleProcessor
    reports: BillingReports
    reconciliation: ReconciliationService


def build_billing_services(
    config: BillingConfig,
    *,
    gateway: Optional[PaymentGateway] = None,
) -> BillingServices:
    accounts = AccountService(config)
    ledger = CreditLedger(config, account_repo=accounts.account_repo)
    slabs = SlabService()
    catalog = CreditPurchaseCatalog()
    trials = FreeTrialManager(config, ledger, accounts)
    leave = LeaveAdjustmentCalculator(config, ledger)
    cycles = BillingCycleProcessor(config, ledger, accounts, slabs, leave, trials)
    reports = BillingReports(ledger, accounts, slabs, cycles)
    reconciliation = ReconciliationService(config, ledger, accounts, catalog, gateway=gateway)
    return BillingServices(
        config=config,
        accounts=accounts,
        ledger=ledger,
        slabs=slabs,
        catalog=catalog,
        trials=trials,
        leave=leave,
        cycles=cycles,
        reports=reports,
        reconciliation=reconciliation,
    )


def get_billing_services(request: Request) -> BillingServices:
    """Dependencia FastAPI."""
    return request.app.state.billing


__all__ = ["BillingServices", "build_billing_services", "get_billing_services"]
