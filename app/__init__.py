# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete principal del backend MessCredit (facturación por créditos
para comedores multi-tenant).

La aplicación se construye con app.main.create_app(); importar el
paquete no tiene efectos colaterales.

Autor: MessCredit
Fecha: 2026-03-02
"""

# Fin del archivo backend/app/__init__.py
