"""
===============================================================================
TARJETA CRC — api/aliases.py (Tabla declarativa de alias legacy)
===============================================================================

Responsabilidades:
  - Declarar TODAS las rutas históricas (recipes, pantry, kitchens, ...) y
    la ruta canónica a la que resuelven, en una única tupla ordenada.
  - Validar la tabla al construir el router (alias -> ruta canónica
    registrada con el mismo handler; sin duplicados; params compatibles).
  - Montar los alias como rutas deprecated=True bajo el tag "legacy".

Colaboradores:
  - interfaces/api/http/routes (tabla canónica + find_canonical)
  - interfaces/api/http/handlers (handlers canónicos)
  - api/routing.build_endpoint (adaptador genérico)

Reglas:
  - Registro estático y exacto; no hay motor de reescritura.
  - Varios alias pueden apuntar al mismo handler con modos distintos.
  - mode=None para handlers sin dialecto (deletes, favoritos, stash, checklist).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from fastapi import APIRouter, FastAPI
from fastapi.responses import Response

from ..application import ResponseMode
from ..interfaces.api.http import handlers
from ..interfaces.api.http.routes import find_canonical
from .routing import PATH_PARAM_PATTERN, build_endpoint

LEGACY_TAG = "legacy"
_LEGACY = ResponseMode.LEGACY


@dataclass(frozen=True)
class LegacyAlias:
    legacy_path: str
    method: str
    canonical_path: str
    handler: Callable[..., Response]
    mode: ResponseMode | None = _LEGACY
    param_map: Mapping[str, str] = field(default_factory=dict, hash=False)


LEGACY_ALIASES: tuple[LegacyAlias, ...] = (
    # hideout-members -> party-members
    LegacyAlias("/api/hideout-members", "GET", "/api/party-members", handlers.get_party_members),
    LegacyAlias("/api/hideout-members", "POST", "/api/party-members", handlers.save_party_member),
    LegacyAlias("/api/hideout-members/{id}", "DELETE", "/api/party-members/{id}", handlers.delete_party_member, None),
    # kitchen-members -> party-members
    LegacyAlias("/api/kitchen-members", "GET", "/api/party-members", handlers.get_party_members),
    LegacyAlias("/api/kitchen-members", "POST", "/api/party-members", handlers.save_party_member),
    LegacyAlias("/api/kitchen-members/{id}", "DELETE", "/api/party-members/{id}", handlers.delete_party_member, None),
    # kitchens -> hideouts
    LegacyAlias("/api/kitchens", "GET", "/api/hideouts", handlers.get_current_hideout),
    LegacyAlias("/api/kitchens", "POST", "/api/hideouts", handlers.create_hideout),
    LegacyAlias("/api/kitchens/join", "POST", "/api/hideouts/join", handlers.join_hideout),
    LegacyAlias(
        "/api/kitchens/{kitchenId}", "PUT", "/api/hideouts/{hideoutId}", handlers.update_hideout,
        param_map={"kitchenId": "hideoutId"},
    ),
    LegacyAlias(
        "/api/kitchens/{kitchenId}", "DELETE", "/api/hideouts/{hideoutId}", handlers.delete_hideout,
        param_map={"kitchenId": "hideoutId"},
    ),
    # recipes -> builds
    LegacyAlias("/api/recipes", "GET", "/api/builds", handlers.get_builds),
    LegacyAlias("/api/recipes", "POST", "/api/builds", handlers.save_build),
    LegacyAlias("/api/recipes/{id}", "GET", "/api/builds/{id}", handlers.get_build_by_id),
    LegacyAlias("/api/recipes/{id}", "PUT", "/api/builds/{id}", handlers.update_build_by_id),
    LegacyAlias("/api/recipes/{id}", "DELETE", "/api/builds/{id}", handlers.delete_build_by_id, None),
    LegacyAlias("/api/recipes/{id}/favorite", "PATCH", "/api/builds/{id}/favorite", handlers.toggle_build_favorite, None),
    LegacyAlias("/api/recipes/{id}/translate", "POST", "/api/builds/{id}/translate", handlers.translate_build_by_id),
    LegacyAlias("/api/recipe", "POST", "/api/build", handlers.craft_build),
    # pantry -> stash
    LegacyAlias("/api/pantry", "GET", "/api/stash", handlers.get_stash, None),
    LegacyAlias("/api/pantry", "POST", "/api/stash", handlers.add_stash_item, None),
    LegacyAlias("/api/pantry/{name}", "PUT", "/api/stash/{name}", handlers.update_stash_item_by_name, None),
    LegacyAlias("/api/pantry/{name}", "DELETE", "/api/stash/{name}", handlers.delete_stash_item_by_name, None),
    # build-items -> checklist
    LegacyAlias("/api/build-items", "GET", "/api/checklist", handlers.get_checklist, None),
    LegacyAlias("/api/build-items", "POST", "/api/checklist", handlers.add_checklist_item, None),
    LegacyAlias("/api/build-items", "DELETE", "/api/checklist", handlers.clear_checklist, None),
    LegacyAlias("/api/build-items/{id}", "PUT", "/api/checklist/{id}", handlers.update_checklist_item_by_id, None),
    LegacyAlias("/api/build-items/{id}", "DELETE", "/api/checklist/{id}", handlers.delete_checklist_item_by_id, None),
    # shopping-list -> checklist
    LegacyAlias("/api/shopping-list", "GET", "/api/checklist", handlers.get_checklist, None),
    LegacyAlias("/api/shopping-list", "POST", "/api/checklist", handlers.add_checklist_item, None),
    LegacyAlias("/api/shopping-list/{id}", "PUT", "/api/checklist/{id}", handlers.update_checklist_item_by_id, None),
    LegacyAlias("/api/shopping-list/{id}", "DELETE", "/api/checklist/{id}", handlers.delete_checklist_item_by_id, None),
)


def _path_params(path: str) -> set[str]:
    return set(PATH_PARAM_PATTERN.findall(path))


def validate_alias_table(aliases: Iterable[LegacyAlias]) -> None:
    """
    Falla rápido si la tabla es inconsistente.

    Raises:
        ValueError: alias duplicado, destino no registrado, handler o modo que
            no coincide con la ruta canónica, o params que no se pueden resolver.
    """
    seen: set[tuple[str, str]] = set()
    for alias in aliases:
        key = (alias.legacy_path, alias.method.upper())
        if key in seen:
            raise ValueError(f"Duplicate legacy alias: {key[1]} {key[0]}")
        seen.add(key)

        binding = find_canonical(alias.canonical_path, alias.method)
        if binding is None:
            raise ValueError(
                f"Legacy alias {key[1]} {key[0]} targets unregistered route "
                f"{alias.canonical_path}"
            )
        if binding.handler is not alias.handler:
            raise ValueError(
                f"Legacy alias {key[1]} {key[0]} does not use the handler of "
                f"{alias.canonical_path} ({binding.handler.__name__})"
            )
        if binding.dual != (alias.mode is not None):
            raise ValueError(
                f"Legacy alias {key[1]} {key[0]}: mode must be "
                f"{'set' if binding.dual else 'None'} for {binding.handler.__name__}"
            )

        resolved = {alias.param_map.get(p, p) for p in _path_params(alias.legacy_path)}
        if resolved != _path_params(alias.canonical_path):
            raise ValueError(
                f"Legacy alias {key[1]} {key[0]}: path params {sorted(resolved)} do "
                f"not match {alias.canonical_path}"
            )


def build_legacy_router(aliases: Iterable[LegacyAlias] = LEGACY_ALIASES) -> APIRouter:
    aliases = tuple(aliases)
    validate_alias_table(aliases)

    router = APIRouter(tags=[LEGACY_TAG])
    for alias in aliases:
        router.add_api_route(
            alias.legacy_path,
            build_endpoint(
                handler=alias.handler,
                mode=alias.mode,
                method=alias.method,
                canonical_path=alias.canonical_path,
                legacy_path=alias.legacy_path,
                param_map=alias.param_map,
            ),
            methods=[alias.method.upper()],
            deprecated=True,
            name=f"legacy_{alias.handler.__name__}",
        )
    return router


def include_legacy_routes(app: FastAPI) -> None:
    """Monta los alias legacy (deprecated en OpenAPI) sobre la app."""
    app.include_router(build_legacy_router())


__all__ = [
    "LEGACY_ALIASES",
    "LegacyAlias",
    "build_legacy_router",
    "include_legacy_routes",
    "validate_alias_table",
]
