# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- BigIntPK: BIGINT autoincremental (INTEGER en SQLite, donde solo
  INTEGER PRIMARY KEY es rowid)
- JSONType: JSONB en PostgreSQL, JSON genérico en otros motores
- as_db_enum: helper para mapear enums Python a columnas VARCHAR + CHECK

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from enum import Enum
from typing import Type

from sqlalchemy import JSON, BigInteger, Integer, MetaData
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# ===== TIPOS PORTABLES =====
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ===== HELPER GENÉRICO PARA ENUMS =====
def as_db_enum(
    enum_cls: Type[Enum],
    name: str | None = None,
) -> SQLEnum:
    """
    Devuelve un tipo Enum de SQLAlchemy persistido por VALOR del enum.

    Uso típico:

        from app.shared.database.base import Base, as_db_enum
        from .enums import BillStatus

        class Bill(Base):
            status: Mapped[BillStatus] = mapped_column(
                as_db_enum(BillStatus, name="bill_status"),
                nullable=False,
            )

    - native_enum=False: VARCHAR + CHECK, igual en PostgreSQL y SQLite;
      agregar un valor nuevo no requiere ALTER TYPE.
    - Si no se pasa `name`, usa el nombre de la clase en minúsculas.
    """
    enum_name = name or enum_cls.__name__.lower()

    def _values(_: object) -> list[str]:
        return [e.value for e in enum_cls]  # type: ignore[arg-type]

    return SQLEnum(
        enum_cls,
        name=enum_name,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=_values,
        validate_strings=True,
    )


__all__ = ["Base", "NAMING_CONVENTION", "BigIntPK", "JSONType", "as_db_enum"]

# Fin del archivo backend/app/shared/database/base.py
