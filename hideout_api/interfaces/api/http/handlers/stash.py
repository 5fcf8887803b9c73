"""
===============================================================================
TARJETA CRC — handlers/stash.py
===============================================================================

Responsibilities:
    - Listar, agregar (upsert por nombre), actualizar y borrar ítems del stash.
    - Aplicar la regla de reposición: ALWAYS + sin stock => ítem pendiente
      en el checklist vinculado al ítem del stash.

Collaborators:
    - container.get_stash_repository (replenish es atómico en el repo)
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import uuid4

from fastapi.responses import JSONResponse

from hideout_api.container import get_stash_repository
from hideout_api.crosscutting.error_responses import conflict, not_found, validation_error
from hideout_api.crosscutting.logger import logger
from hideout_api.domain.entities import ReplenishmentRule, StashItem

from ..request import ApiRequest, json_response
from .common import session_of, text_field


def stash_item_payload(item: StashItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "inStock": item.in_stock,
        "replenishmentRule": item.replenishment_rule.value,
        "quantity": item.quantity,
        "unit": item.unit,
        "unitDetails": item.unit_details,
        "checklistItemId": item.checklist_item_id,
    }


def _rule(value: Any) -> ReplenishmentRule:
    try:
        return ReplenishmentRule(str(value).strip().upper())
    except ValueError as exc:
        raise validation_error("replenishmentRule must be ALWAYS or NEVER") from exc


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _replenish_if_needed(item: StashItem) -> StashItem:
    """Vincula un ítem pendiente del checklist si el ítem se agotó con regla ALWAYS."""
    if item.in_stock or item.replenishment_rule != ReplenishmentRule.ALWAYS:
        return item
    stash = get_stash_repository()
    checklist_item = stash.replenish(item)
    logger.info(
        "Stash item queued for replenishment",
        extra={"stash_item_id": item.id, "checklist_item_id": checklist_item.id},
    )
    return stash.get_item_by_name(item.hideout_id, item.name) or item


def get_stash(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    items = get_stash_repository().list_items(session.hideout_id)
    return json_response([stash_item_payload(i) for i in items])


def add_stash_item(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    data = request.json()
    name = text_field(data, "name")
    if not name:
        raise validation_error("Name is required")

    in_stock = data.get("inStock")
    rule = data.get("replenishmentRule")
    item = get_stash_repository().upsert_item(
        StashItem(
            id=str(uuid4()),
            hideout_id=session.hideout_id,
            name=name,
            in_stock=in_stock if isinstance(in_stock, bool) else True,
            replenishment_rule=_rule(rule) if rule else ReplenishmentRule.NEVER,
            quantity=_optional_text(data.get("quantity")),
            unit=_optional_text(data.get("unit")),
            unit_details=_optional_text(data.get("unitDetails")),
        )
    )
    return json_response(stash_item_payload(_replenish_if_needed(item)))


def update_stash_item_by_name(
    request: ApiRequest, params: Mapping[str, str]
) -> JSONResponse:
    """Update parcial: solo se tocan los campos presentes en el body."""
    session = session_of(request)
    name = params["name"]
    data = request.json()
    stash = get_stash_repository()

    item = stash.get_item_by_name(session.hideout_id, name)
    if item is None:
        raise not_found("Stash item", name)

    if "name" in data:
        new_name = text_field(data, "name")
        if not new_name:
            raise validation_error("Name is required")
        if new_name != name and stash.get_item_by_name(session.hideout_id, new_name):
            raise conflict(f"Stash item '{new_name}' already exists")
        item.name = new_name
    if isinstance(data.get("inStock"), bool):
        item.in_stock = data["inStock"]
    if "replenishmentRule" in data:
        item.replenishment_rule = _rule(data["replenishmentRule"])
    if "quantity" in data:
        item.quantity = _optional_text(data["quantity"])
    if "unit" in data:
        item.unit = _optional_text(data["unit"])
    if "unitDetails" in data:
        item.unit_details = _optional_text(data["unitDetails"])

    try:
        updated = stash.update_item(item, previous_name=name)
    except KeyError as exc:
        raise not_found("Stash item", name) from exc
    return json_response(stash_item_payload(_replenish_if_needed(updated)))


def delete_stash_item_by_name(
    request: ApiRequest, params: Mapping[str, str]
) -> JSONResponse:
    session = session_of(request)
    name = params["name"]
    stash = get_stash_repository()
    item = stash.get_item_by_name(session.hideout_id, name)
    if item is None:
        raise not_found("Stash item", name)
    stash.delete_item(item.id)
    return json_response({"success": True})
