"""
===============================================================================
TARJETA CRC — worker/replenishment.py (Job de reposición del stash)
===============================================================================

Responsabilidades:
  - Cada N segundos, buscar ítems del stash con regla ALWAYS, sin stock y
    sin ítem de checklist vinculado, y crear/reabrir ese ítem pendiente.
  - Correr en un thread daemon con stop() cooperativo (threading.Event).
  - Nunca tirar el proceso: los errores de un tick se loguean y se cuentan.

Patrones aplicados:
  - Best-effort background work: un tick fallido no detiene el loop.

Colaboradores:
  - container.get_stash_repository (replenish atómico por ítem)
  - crosscutting.metrics.record_replenishment_run
  - api/bootstrap.JobBootstrapGuard (llama start_replenishment_job una vez)
===============================================================================
"""

from __future__ import annotations

import threading
import uuid

from ..container import get_stash_repository
from ..context import clear_context, set_request_context
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_replenishment_run
from ..domain.repositories import StashRepository


class ReplenishmentJob:
    def __init__(self, stash_repository: StashRepository, interval_seconds: int = 300):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._stash = stash_repository
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Un tick: devuelve cuántos ítems quedaron vinculados al checklist."""
        set_request_context(request_id=f"replenishment-{uuid.uuid4()}")
        linked = 0
        failed = False
        try:
            try:
                pending = self._stash.list_needing_replenishment()
            except Exception:
                logger.exception("Replenishment tick failed listing stash items")
                failed = True
                return 0

            for item in pending:
                try:
                    self._stash.replenish(item)
                    linked += 1
                except Exception:
                    failed = True
                    logger.exception(
                        "Replenishment failed for stash item",
                        extra={"stash_item_id": item.id, "hideout_id": item.hideout_id},
                    )

            if pending:
                logger.info(
                    "Replenishment tick completed",
                    extra={"candidates": len(pending), "linked": linked},
                )
            return linked
        finally:
            record_replenishment_run(linked=linked, failed=failed)
            clear_context()

    def _loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.run_once()

    def start(self) -> "ReplenishmentJob":
        if self.is_running:
            return self
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name="replenishment-job", daemon=True
        )
        self._thread.start()
        logger.info(
            "Replenishment job scheduled", extra={"interval_seconds": self._interval}
        )
        return self

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


def start_replenishment_job() -> ReplenishmentJob:
    """Starter inyectado en JobBootstrapGuard (sin argumentos)."""
    job = ReplenishmentJob(
        get_stash_repository(),
        interval_seconds=get_settings().replenishment_interval_seconds,
    )
    return job.start()
