# -*- coding: utf-8 -*-
"""
backend/app/shared/__init__.py

Infraestructura compartida: configuración, base de datos, middlewares,
scheduler y utilidades. Cada subpaquete se importa explícitamente.
"""
