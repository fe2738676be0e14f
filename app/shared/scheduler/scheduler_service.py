# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/scheduler_service.py

Servicio de programación de tareas periódicas usando APScheduler.

Una instancia por aplicación: la construye create_app() y vive en
app.state.scheduler (sin singleton de módulo).

Autor: MessCredit
Fecha: 2026-03-09
"""

import logging
from typing import Any, Callable, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Servicio de programación de tareas periódicas.

    Funcionalidades:
    - Jobs con intervalos o expresiones cron (5 campos, UTC)
    - Una instancia concurrente por job, ejecuciones perdidas combinadas
    """

    def __init__(self, *, misfire_grace_time: int = 300):
        self._scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,  # Combinar ejecuciones perdidas
                "max_instances": 1,  # Una instancia por job
                "misfire_grace_time": misfire_grace_time,
            },
            timezone="UTC",
        )
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("SchedulerService iniciado jobs=%d", len(self._scheduler.get_jobs()))

    def shutdown(self, wait: bool = True) -> None:
        """
        Args:
            wait: Si True, espera a que terminen los jobs en ejecución
        """
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False
            logger.info("SchedulerService detenido")

    def add_interval_job(
        self,
        func: Callable[..., Any],
        job_id: str,
        *,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        **kwargs: Any,
    ) -> str:
        """Agrega un job que se ejecuta a intervalos regulares."""
        self._scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(hours=hours, minutes=minutes, seconds=seconds),
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
        )
        logger.info("Job '%s' agregado: cada %dh %dm %ds", job_id, hours, minutes, seconds)
        return job_id

    def add_cron_job(
        self,
        func: Callable[..., Any],
        job_id: str,
        cron_expression: str,
        **kwargs: Any,
    ) -> str:
        """
        Agrega un job según expresión cron "min hora día mes día_semana".

        Raises:
            ValueError: la expresión no tiene 5 campos
        """
        parts = cron_expression.split()
        if len(parts) != 5:
            raise ValueError("Expresión cron inválida (requiere 5 campos)")
        minute, hour, day, month, day_of_week = parts

        self._scheduler.add_job(
            func=func,
            trigger=CronTrigger(
                minute=minute,
                hour=hour,
                day=day,
                month=month,
                day_of_week=day_of_week,
                timezone="UTC",
            ),
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
        )
        logger.info("Job '%s' agregado: cron '%s'", job_id, cron_expression)
        return job_id

    def get_jobs(self) -> list[dict[str, Any]]:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self._scheduler.get_jobs()
        ]

    def get_job_status(self, job_id: str) -> Optional[dict[str, Any]]:
        job = self._scheduler.get_job(job_id)
        if job is None:
            return None
        return {
            "id": job.id,
            "name": job.name,
            "next_run": getattr(job, "next_run_time", None),
            "trigger": str(job.trigger),
        }

    @property
    def is_running(self) -> bool:
        """Retorna True si el scheduler está activo."""
        return self._started and self._scheduler.running


# Fin del archivo backend/app/shared/scheduler/scheduler_service.py
