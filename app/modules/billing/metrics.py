# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/metrics.py

Métricas Prometheus del motor de facturación.

Se registran en el registry por defecto de prometheus_client, el mismo que
expone /metrics (app.observability.prom).

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from prometheus_client import Counter

# Movimientos del ledger por razón y resultado (posted|duplicate|insufficient|conflict)
LEDGER_POSTINGS = Counter(
    "billing_ledger_postings_total",
    "Ledger posting attempts",
    ["reason", "outcome"],
)

# Facturas generadas por estado resultante (paid|pending|waived)
BILLS_GENERATED = Counter(
    "billing_bills_generated_total",
    "Cycle bills generated",
    ["status"],
)

# Webhooks de la pasarela por resultado (verified|duplicate|failed|rejected|bad_signature)
GATEWAY_WEBHOOKS = Counter(
    "billing_gateway_webhooks_total",
    "Payment gateway webhooks processed",
    ["outcome"],
)

# Ejecuciones de jobs programados
JOB_RUNS = Counter(
    "billing_job_runs_total",
    "Scheduled billing job runs",
    ["job", "outcome"],
)


__all__ = ["LEDGER_POSTINGS", "BILLS_GENERATED", "GATEWAY_WEBHOOKS", "JOB_RUNS"]
