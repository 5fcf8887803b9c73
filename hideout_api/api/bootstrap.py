"""
===============================================================================
TARJETA CRC — api/bootstrap.py (Arranque único del job de reposición)
===============================================================================

Responsabilidades:
  - Arrancar el job de reposición como máximo UNA vez por proceso.
  - Respetar el discriminador de runtime (solo "server") y el opt-out
    ENABLE_REPLENISHMENT_JOB.
  - Conservar el handle del job para detenerlo en el shutdown.

Colaboradores:
  - crosscutting.config.Settings (app_runtime, enable_replenishment_job)
  - container.get_bootstrap_guard (singleton de proceso)
  - api/main.py (lifespan: bootstrap() al iniciar, shutdown() al cerrar)

Reglas:
  - Estado NOT_STARTED -> STARTED protegido por lock; nunca vuelve atrás.
  - Un error del starter se propaga al lifespan y el estado queda STARTED
    (no hay reintento).
===============================================================================
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable

from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger

SERVER_RUNTIME = "server"


class BootstrapState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    STARTED = "STARTED"


class JobBootstrapGuard:
    def __init__(
        self,
        job_starter: Callable[[], Any],
        *,
        settings: Settings | None = None,
    ) -> None:
        self._job_starter = job_starter
        self._settings = settings
        self._lock = threading.Lock()
        self._state = BootstrapState.NOT_STARTED
        self._handle: Any = None

    @property
    def state(self) -> BootstrapState:
        return self._state

    @property
    def handle(self) -> Any:
        return self._handle

    def bootstrap(self) -> bool:
        """
        Arranca el job si corresponde.

        Returns:
            True solo en la llamada que efectivamente invocó al starter.
        """
        settings = self._settings or get_settings()

        if settings.app_runtime != SERVER_RUNTIME:
            return False

        if not settings.enable_replenishment_job:
            logger.info("Replenishment job disabled by ENABLE_REPLENISHMENT_JOB=false")
            return False

        with self._lock:
            if self._state is BootstrapState.STARTED:
                return False
            self._state = BootstrapState.STARTED
            self._handle = self._job_starter()

        logger.info("Replenishment job started")
        return True

    def shutdown(self) -> None:
        """Detiene el job si el handle expone stop()."""
        with self._lock:
            handle = self._handle
            self._handle = None
        stop = getattr(handle, "stop", None)
        if callable(stop):
            stop()
            logger.info("Replenishment job stopped")
