# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/__init__.py

Sistema de jobs programados usando APScheduler.

Autor: MessCredit
Fecha: 2026-03-09
"""

from .scheduler_service import SchedulerService

__all__ = ["SchedulerService"]
