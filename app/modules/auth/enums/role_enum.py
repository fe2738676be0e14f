# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/enums/role_enum.py

Enum de roles presentes en el claim `role` del JWT.

Roles disponibles: mess_owner, admin

Autor: MessCredit
Fecha: 2026-03-08
"""
from enum import StrEnum


class UserRole(StrEnum):
    mess_owner = "mess_owner"
    admin = "admin"


__all__ = ["UserRole"]

# Fin del archivo backend/app/modules/auth/enums/role_enum.py
