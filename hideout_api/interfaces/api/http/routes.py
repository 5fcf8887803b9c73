"""
===============================================================================
TARJETA CRC — routes.py (Tabla de rutas canónicas)
===============================================================================

Responsabilidades:
  - Declarar, en un único lugar, las rutas canónicas de /api y su handler.
  - Indicar qué handlers son duales (reciben ResponseMode).
  - NO contiene lógica: api/routing.py convierte cada registro en endpoint.

Colaboradores:
  - handlers/* (implementación)
  - api/routing.py (adaptador genérico)
  - api/aliases.py (valida que cada alias apunte a una ruta de esta tabla)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastapi.responses import Response

from . import handlers

Handler = Callable[..., Response]


@dataclass(frozen=True)
class RouteBinding:
    path: str
    method: str
    handler: Handler
    dual: bool
    tag: str


CANONICAL_ROUTES: tuple[RouteBinding, ...] = (
    # Party members
    RouteBinding("/api/party-members", "GET", handlers.get_party_members, True, "party-members"),
    RouteBinding("/api/party-members", "POST", handlers.save_party_member, True, "party-members"),
    RouteBinding("/api/party-members/{id}", "DELETE", handlers.delete_party_member, False, "party-members"),
    # Hideouts
    RouteBinding("/api/hideouts", "GET", handlers.get_current_hideout, True, "hideouts"),
    RouteBinding("/api/hideouts", "POST", handlers.create_hideout, True, "hideouts"),
    RouteBinding("/api/hideouts/join", "POST", handlers.join_hideout, True, "hideouts"),
    RouteBinding("/api/hideouts/{hideoutId}", "PUT", handlers.update_hideout, True, "hideouts"),
    RouteBinding("/api/hideouts/{hideoutId}", "DELETE", handlers.delete_hideout, True, "hideouts"),
    # Builds
    RouteBinding("/api/builds", "GET", handlers.get_builds, True, "builds"),
    RouteBinding("/api/builds", "POST", handlers.save_build, True, "builds"),
    RouteBinding("/api/builds/{id}", "GET", handlers.get_build_by_id, True, "builds"),
    RouteBinding("/api/builds/{id}", "PUT", handlers.update_build_by_id, True, "builds"),
    RouteBinding("/api/builds/{id}", "DELETE", handlers.delete_build_by_id, False, "builds"),
    RouteBinding("/api/builds/{id}/favorite", "PATCH", handlers.toggle_build_favorite, False, "builds"),
    RouteBinding("/api/builds/{id}/translate", "POST", handlers.translate_build_by_id, True, "builds"),
    RouteBinding("/api/build", "POST", handlers.craft_build, True, "builds"),
    # Stash
    RouteBinding("/api/stash", "GET", handlers.get_stash, False, "stash"),
    RouteBinding("/api/stash", "POST", handlers.add_stash_item, False, "stash"),
    RouteBinding("/api/stash/{name}", "PUT", handlers.update_stash_item_by_name, False, "stash"),
    RouteBinding("/api/stash/{name}", "DELETE", handlers.delete_stash_item_by_name, False, "stash"),
    # Checklist
    RouteBinding("/api/checklist", "GET", handlers.get_checklist, False, "checklist"),
    RouteBinding("/api/checklist", "POST", handlers.add_checklist_item, False, "checklist"),
    RouteBinding("/api/checklist", "DELETE", handlers.clear_checklist, False, "checklist"),
    RouteBinding("/api/checklist/{id}", "PUT", handlers.update_checklist_item_by_id, False, "checklist"),
    RouteBinding("/api/checklist/{id}", "DELETE", handlers.delete_checklist_item_by_id, False, "checklist"),
)


def find_canonical(path: str, method: str) -> RouteBinding | None:
    for binding in CANONICAL_ROUTES:
        if binding.path == path and binding.method == method.upper():
            return binding
    return None
