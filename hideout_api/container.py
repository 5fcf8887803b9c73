"""
===============================================================================
TARJETA CRC — hideout_api/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, servicios de IA, tracker legacy,
    guard del job) siguiendo DIP.
  - Exponer factories para los handlers, el router y el worker.
  - Mantener singletons con caching (lru_cache) para recursos de proceso.
  - Centralizar decisiones runtime basadas en Settings (config).

Colaboradores:
  - hideout_api.crosscutting.config.get_settings
  - hideout_api.domain.repositories.* / domain.services.* (puertos)
  - hideout_api.infrastructure.* (implementaciones)
  - hideout_api.api.deprecation / api.bootstrap

Notas:
  - Este archivo NO contiene lógica de negocio.
  - No registra rutas ni toca la app FastAPI; solo arma objetos.
  - reset_container() existe para tests (singletons nuevos por test).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .api.bootstrap import JobBootstrapGuard
from .api.deprecation import DeprecationPolicy, LegacyUsageTracker
from .crosscutting.config import get_settings
from .domain.repositories import (
    BuildRepository,
    ChecklistRepository,
    HideoutRepository,
    PartyMemberRepository,
    StashRepository,
    UserRepository,
)
from .domain.services import BuildCrafter, BuildTranslator
from .infrastructure.repositories import (
    InMemoryBuildRepository,
    InMemoryChecklistRepository,
    InMemoryHideoutRepository,
    InMemoryPartyMemberRepository,
    InMemoryStashRepository,
    InMemoryUserRepository,
    PostgresBuildRepository,
    PostgresChecklistRepository,
    PostgresHideoutRepository,
    PostgresPartyMemberRepository,
    PostgresStashRepository,
    PostgresUserRepository,
)
from .infrastructure.services import (
    FakeBuildCrafter,
    FakeBuildTranslator,
    GeminiBuildCrafter,
    GeminiBuildTranslator,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """
    Determina si estamos en entorno de test.

    Regla:
      - app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters.
    """
    return get_settings().is_test()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_user_repository() -> UserRepository:
    if _is_test_env():
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_hideout_repository() -> HideoutRepository:
    if _is_test_env():
        return InMemoryHideoutRepository()
    return PostgresHideoutRepository()


@lru_cache(maxsize=1)
def get_party_member_repository() -> PartyMemberRepository:
    """En test el repo in-memory ve el soft delete de hideouts (como el JOIN SQL)."""
    if _is_test_env():
        return InMemoryPartyMemberRepository(hideouts=get_hideout_repository())
    return PostgresPartyMemberRepository()


@lru_cache(maxsize=1)
def get_build_repository() -> BuildRepository:
    if _is_test_env():
        return InMemoryBuildRepository()
    return PostgresBuildRepository()


@lru_cache(maxsize=1)
def get_checklist_repository() -> ChecklistRepository:
    if _is_test_env():
        return InMemoryChecklistRepository()
    return PostgresChecklistRepository()


@lru_cache(maxsize=1)
def get_stash_repository() -> StashRepository:
    """El stash in-memory comparte el checklist para emular replenish atómico."""
    if _is_test_env():
        return InMemoryStashRepository(checklist=get_checklist_repository())
    return PostgresStashRepository()


# =============================================================================
# Servicios externos (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_build_translator() -> BuildTranslator:
    """Traductor de builds (fake si FAKE_LLM=true o no hay GOOGLE_API_KEY)."""
    settings = get_settings()
    if settings.use_fake_ai():
        return FakeBuildTranslator()
    return GeminiBuildTranslator(settings.google_api_key, model_id=settings.gemini_model)


@lru_cache(maxsize=1)
def get_build_crafter() -> BuildCrafter:
    settings = get_settings()
    if settings.use_fake_ai():
        return FakeBuildCrafter()
    return GeminiBuildCrafter(settings.google_api_key, model_id=settings.gemini_model)


# =============================================================================
# Capa de compatibilidad (singletons de proceso)
# =============================================================================


@lru_cache(maxsize=1)
def get_deprecation_policy() -> DeprecationPolicy:
    settings = get_settings()
    return DeprecationPolicy(
        sunset=settings.legacy_api_sunset,
        migration_link=settings.legacy_api_migration_link,
    )


@lru_cache(maxsize=1)
def get_legacy_usage_tracker() -> LegacyUsageTracker:
    return LegacyUsageTracker()


@lru_cache(maxsize=1)
def get_bootstrap_guard() -> JobBootstrapGuard:
    """Un guard por proceso; el starter del job se inyecta acá."""
    # R: import local, el worker depende de este módulo para sus repos.
    from .worker.replenishment import start_replenishment_job

    return JobBootstrapGuard(start_replenishment_job)


def reset_container() -> None:
    """Descarta todos los singletons (tests)."""
    for factory in (
        get_user_repository,
        get_hideout_repository,
        get_party_member_repository,
        get_build_repository,
        get_checklist_repository,
        get_stash_repository,
        get_build_translator,
        get_build_crafter,
        get_deprecation_policy,
        get_legacy_usage_tracker,
        get_bootstrap_guard,
    ):
        factory.cache_clear()
