"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/builds.py
============================================================
Class: InMemoryBuildRepository

Responsibilities:
  - Almacenar builds y sus familias de traducción en memoria.
  - Ordering alineado con Postgres: created_at DESC, id ASC.

Constraints / Notes:
  - Thread-safe (Lock) + copias defensivas.
============================================================
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from ....domain.entities import Build


class InMemoryBuildRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._builds: Dict[str, Build] = {}

    @staticmethod
    def _sorted(builds: List[Build]) -> List[Build]:
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        by_id = sorted(builds, key=lambda b: b.id)
        return sorted(by_id, key=lambda b: b.created_at or epoch, reverse=True)

    def list_builds(self, hideout_id: str) -> List[Build]:
        with self._lock:
            builds = [
                deepcopy(b) for b in self._builds.values() if b.hideout_id == hideout_id
            ]
        return self._sorted(builds)

    def get_build(self, build_id: str) -> Optional[Build]:
        with self._lock:
            build = self._builds.get(build_id)
            return deepcopy(build) if build else None

    def list_family(self, family_id: str) -> List[Build]:
        with self._lock:
            family = [
                deepcopy(b) for b in self._builds.values() if b.family_id == family_id
            ]
        return self._sorted(family)

    def create_build(self, build: Build) -> Build:
        with self._lock:
            stored = deepcopy(build)
            stored.created_at = stored.created_at or datetime.now(timezone.utc)
            self._builds[stored.id] = stored
            return deepcopy(stored)

    def update_build(self, build: Build) -> Build:
        with self._lock:
            if build.id not in self._builds:
                raise KeyError(build.id)
            self._builds[build.id] = deepcopy(build)
            return deepcopy(build)

    def delete_build(self, build_id: str) -> bool:
        with self._lock:
            return self._builds.pop(build_id, None) is not None
