"""
===============================================================================
TARJETA CRC — handlers/checklist.py
===============================================================================

Responsibilities:
    - Listar el checklist por estado (pending | completed | all).
    - Agregar ítems (reabre uno existente con el mismo nombre).
    - Limpiar: borra ítems sin builds y archiva los pendientes con builds.
    - Marcar / borrar un ítem; al marcarlo, el stash queda con stock.

Collaborators:
    - container.get_checklist_repository / get_stash_repository

Notes:
    - Reabrir un ítem (checked=false) no toca el stock del stash.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import uuid4

from fastapi.responses import JSONResponse

from hideout_api.container import get_checklist_repository, get_stash_repository
from hideout_api.crosscutting.error_responses import not_found, validation_error
from hideout_api.crosscutting.logger import logger
from hideout_api.domain.entities import ChecklistItem, ReplenishmentRule, StashItem

from ..request import ApiRequest, json_response
from .common import session_of, text_field

_STATUSES = {"pending", "completed", "all"}


def checklist_item_payload(item: ChecklistItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "checked": item.checked,
        "quantity": item.quantity,
        "unit": item.unit,
        "buildIds": sorted(item.build_ids),
        "hideoutId": item.hideout_id,
    }


def _owned_item(item_id: str, hideout_id: str) -> ChecklistItem:
    item = get_checklist_repository().get_item(item_id)
    if item is None or item.hideout_id != hideout_id:
        raise not_found("Checklist item", item_id)
    return item


def _restock(hideout_id: str, name: str) -> None:
    stash = get_stash_repository()
    existing = stash.get_item_by_name(hideout_id, name)
    if existing is None:
        stash.upsert_item(
            StashItem(
                id=str(uuid4()),
                hideout_id=hideout_id,
                name=name,
                in_stock=True,
                replenishment_rule=ReplenishmentRule.NEVER,
            )
        )
        return
    existing.in_stock = True
    stash.update_item(existing, previous_name=name)


def get_checklist(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    status = request.query("status", "pending")
    if status not in _STATUSES:
        status = "pending"
    items = get_checklist_repository().list_items(session.hideout_id, status=status)
    return json_response([checklist_item_payload(i) for i in items])


def add_checklist_item(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    data = request.json()
    name = text_field(data, "name")
    if not name:
        raise validation_error("Name is required")

    checklist = get_checklist_repository()
    item = checklist.get_item_by_name(session.hideout_id, name)
    if item is not None:
        if item.checked:
            item.checked = False
            item = checklist.update_item(item)
    else:
        item = checklist.create_item(
            ChecklistItem(
                id=str(uuid4()),
                hideout_id=session.hideout_id,
                name=name,
                quantity=text_field(data, "quantity") or None,
                unit=text_field(data, "unit") or None,
            )
        )
    return json_response(checklist_item_payload(item))


def clear_checklist(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    deleted, archived = get_checklist_repository().clear(session.hideout_id)
    logger.info(
        "Checklist cleared",
        extra={"hideout_id": session.hideout_id, "deleted": deleted, "archived": archived},
    )
    return json_response(
        {"message": "Checklist cleared", "deleted": deleted, "archived": archived}
    )


def update_checklist_item_by_id(
    request: ApiRequest, params: Mapping[str, str]
) -> JSONResponse:
    session = session_of(request)
    checked = request.json().get("checked")
    item = _owned_item(params["id"], session.hideout_id)

    if isinstance(checked, bool):
        item.checked = checked
        item = get_checklist_repository().update_item(item)
    if checked is True:
        _restock(session.hideout_id, item.name)
    return json_response(checklist_item_payload(item))


def delete_checklist_item_by_id(
    request: ApiRequest, params: Mapping[str, str]
) -> JSONResponse:
    session = session_of(request)
    item = _owned_item(params["id"], session.hideout_id)
    get_checklist_repository().delete_item(item.id)
    return json_response({"message": "Checklist item deleted"})
