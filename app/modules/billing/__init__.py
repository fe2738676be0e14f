# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/__init__.py

Motor de facturación por créditos para comedores (multi-tenant).

Submódulos:
- credits: ledger de créditos y cuentas
- pricing: slabs por usuarios activos
- catalog: planes de compra de créditos
- trial: prueba gratuita única
- leave: ajustes por permisos
- cycles: facturas por ciclo
- reports: reportes y ajustes administrativos
- routes: adaptadores HTTP

Autor: MessCredit
Fecha: 2026-03-02
"""
