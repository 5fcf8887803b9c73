"""
============================================================
TARJETA CRC
============================================================
Module: infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación para el composition root.
============================================================
"""

# ---------------------------
# In-memory implementations
# Tests unitarios y entornos volátiles; no persisten tras reiniciar.
# ---------------------------
from .in_memory import (
    InMemoryBuildRepository,
    InMemoryChecklistRepository,
    InMemoryHideoutRepository,
    InMemoryPartyMemberRepository,
    InMemoryStashRepository,
    InMemoryUserRepository,
)

# ---------------------------
# Postgres implementations
# ---------------------------
from .postgres import (
    PostgresBuildRepository,
    PostgresChecklistRepository,
    PostgresHideoutRepository,
    PostgresPartyMemberRepository,
    PostgresStashRepository,
    PostgresUserRepository,
)

__all__ = [
    "InMemoryBuildRepository",
    "InMemoryChecklistRepository",
    "InMemoryHideoutRepository",
    "InMemoryPartyMemberRepository",
    "InMemoryStashRepository",
    "InMemoryUserRepository",
    "PostgresBuildRepository",
    "PostgresChecklistRepository",
    "PostgresHideoutRepository",
    "PostgresPartyMemberRepository",
    "PostgresStashRepository",
    "PostgresUserRepository",
]
