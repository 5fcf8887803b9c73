"""
===============================================================================
TARJETA CRC — handlers/builds.py
===============================================================================

Responsibilities:
    - CRUD de builds guardados del hideout.
    - Agrupar traducciones por familia (original_build_id) en el listado.
    - Marcar/desmarcar favoritos del miembro que pide.
    - Traducir un build (puerto BuildTranslator) y persistir la traducción.
    - Mantener los vínculos build -> checklist (build_items).

Collaborators:
    - application.build_contract (normalize_build_payload / serialize_build_payload)
    - container: repos de builds, miembros y checklist; get_build_translator
    - crosscutting.error_responses

Notes:
    - Los payloads de entrada aceptan ambos vocabularios en ambos modos.
    - El modo solo decide la serialización final (serialize_build_payload).
===============================================================================
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from uuid import uuid4

from fastapi.responses import JSONResponse

from hideout_api.application import (
    ResponseMode,
    normalize_build_payload,
    serialize_build_payload,
)
from hideout_api.container import (
    get_build_repository,
    get_build_translator,
    get_checklist_repository,
    get_party_member_repository,
)
from hideout_api.crosscutting.error_responses import not_found, validation_error
from hideout_api.crosscutting.logger import logger
from hideout_api.domain.entities import Build, BuildEntry

from ..request import ApiRequest, json_response
from .common import session_of

DEFAULT_LANGUAGE = "en"


# =============================================================================
# Helpers internos
# =============================================================================


def _entries(raw: Iterable[dict[str, str]]) -> list[BuildEntry]:
    return [BuildEntry(name=e["name"], quantity=e["quantity"], unit=e["unit"]) for e in raw]


def _apply_payload(build: Build, normalized: dict[str, Any]) -> Build:
    """Copia los campos editables del payload canónico sobre la entidad."""
    build.build_title = normalized["build_title"]
    build.analysis_log = normalized["analysis_log"] or "Manual Entry"
    build.build_reasoning = normalized["build_reasoning"]
    build.gear_gems = _entries(normalized["gear_gems"])
    build.build_items = _entries(normalized["build_items"])
    build.build_steps = list(normalized["build_steps"])
    build.compliance_badge = normalized["compliance_badge"]
    build.build_archetype = normalized["build_archetype"]
    build.build_cost_tier = normalized["build_cost_tier"]
    build.setup_time = normalized["setup_time"]
    build.setup_time_minutes = normalized["setup_time_minutes"]
    build.build_image = normalized["build_image"]
    return build


def _translation_refs(build: Build, family: Iterable[Build]) -> list[dict[str, str]]:
    return [
        {"id": b.id, "language": b.language, "build_title": b.build_title}
        for b in family
        if b.id != build.id
    ]


def _present(
    build: Build,
    mode: ResponseMode,
    *,
    translations: list[dict[str, str]] | None = None,
    is_favorite: bool = False,
    language: str | None = None,
) -> dict[str, Any]:
    raw = build.to_payload()
    raw["isFavorite"] = is_favorite
    raw["translations"] = translations or []
    if language:
        raw["language"] = language
    return serialize_build_payload(raw, mode, language)


def _favorite_ids(hideout_id: str, user_id: str) -> set[str]:
    member = get_party_member_repository().get_member_by_user(hideout_id, user_id)
    return set(member.favorite_build_ids) if member else set()


def _get_or_404(build_id: str) -> Build:
    build = get_build_repository().get_build(build_id)
    if build is None:
        raise not_found("Build", build_id)
    return build


def _pick_for_language(family: list[Build], lang: str) -> Build:
    for build in family:
        if build.language == lang:
            return build
    for build in family:
        if build.original_build_id is None:
            return build
    return family[0]


# =============================================================================
# Handlers
# =============================================================================


def get_builds(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    """Un build por familia, en el idioma ?lang= si existe (default en)."""
    session = session_of(request)
    lang = request.query("lang", DEFAULT_LANGUAGE)
    favorites = _favorite_ids(session.hideout_id, session.user_id)

    families: dict[str, list[Build]] = {}
    for build in get_build_repository().list_builds(session.hideout_id):
        families.setdefault(build.family_id, []).append(build)

    payload = []
    for family in families.values():
        selected = _pick_for_language(family, lang)
        payload.append(
            _present(
                selected,
                mode,
                translations=_translation_refs(selected, family),
                is_favorite=selected.id in favorites,
                language=lang,
            )
        )
    return json_response(payload)


def save_build(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    session = session_of(request)
    normalized = normalize_build_payload(request.json())

    build = _apply_payload(
        Build(id=str(uuid4()), hideout_id=session.hideout_id, build_title=""), normalized
    )
    build.build_reasoning = build.build_reasoning or "User Created"
    build.language = normalized["language"] or DEFAULT_LANGUAGE
    build.original_build_id = normalized["originalBuildId"] or None

    created = get_build_repository().create_build(build)
    get_checklist_repository().link_build(
        session.hideout_id, created.id, created.build_items
    )

    is_favorite = False
    if normalized["isFavorite"]:
        member = get_party_member_repository().get_member_by_user(
            session.hideout_id, session.user_id
        )
        if member is not None:
            is_favorite = get_party_member_repository().toggle_favorite(
                member.id, created.id
            )

    logger.info(
        "Build saved",
        extra={"build_id": created.id, "hideout_id": session.hideout_id},
    )
    return json_response(_present(created, mode, is_favorite=is_favorite))


def get_build_by_id(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    build = _get_or_404(params["id"])
    family = get_build_repository().list_family(build.family_id)
    return json_response(
        _present(
            build,
            mode,
            translations=_translation_refs(build, family),
            language=request.query("lang", build.language),
        )
    )


def update_build_by_id(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    """Reemplaza los campos del build y sus vínculos con el checklist."""
    build = _get_or_404(params["id"])
    normalized = normalize_build_payload(request.json())

    _apply_payload(build, normalized)
    build.language = normalized["language"] or build.language
    build.original_build_id = normalized["originalBuildId"] or build.original_build_id

    updated = get_build_repository().update_build(build)
    checklist = get_checklist_repository()
    checklist.unlink_build(updated.id)
    checklist.link_build(updated.hideout_id, updated.id, updated.build_items)

    logger.info("Build updated", extra={"build_id": updated.id})
    return json_response(_present(updated, mode, language=updated.language))


def delete_build_by_id(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    build = _get_or_404(params["id"])
    get_checklist_repository().unlink_build(build.id)
    get_build_repository().delete_build(build.id)
    logger.info("Build deleted", extra={"build_id": build.id})
    return json_response({"success": True})


def toggle_build_favorite(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    members = get_party_member_repository()
    member = members.get_member_by_user(session.hideout_id, session.user_id)
    if member is None:
        raise not_found("Party member")
    build = _get_or_404(params["id"])

    return json_response({"isFavorite": members.toggle_favorite(member.id, build.id)})


def translate_build_by_id(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    """
    Traducción de un build.

    - Si la familia ya tiene una traducción al idioma pedido, se devuelve.
    - Si no, el traductor genera el payload y se persiste como nuevo miembro
      de la familia. Sin build_items traducidos se usan los del original.
    """
    target_language = request.json().get("targetLanguage")
    if not isinstance(target_language, str) or not target_language.strip():
        raise validation_error("Target language is required")
    target_language = target_language.strip()

    source = _get_or_404(params["id"])
    builds = get_build_repository()
    root_id = source.family_id

    for candidate in builds.list_family(root_id):
        if candidate.original_build_id == root_id and candidate.language == target_language:
            return json_response(_present(candidate, mode, language=target_language))

    source_payload = normalize_build_payload(source.to_payload())
    translated = normalize_build_payload(
        get_build_translator().translate_build(source_payload, target_language)
    )

    build = _apply_payload(
        Build(id=str(uuid4()), hideout_id=source.hideout_id, build_title=""), translated
    )
    build.analysis_log = translated["analysis_log"] or source.analysis_log
    build.setup_time_minutes = (
        translated["setup_time_minutes"]
        if translated["setup_time_minutes"] is not None
        else source.setup_time_minutes
    )
    build.build_image = translated["build_image"] or source.build_image
    build.language = target_language
    build.original_build_id = root_id
    if not build.build_items and source.build_items:
        logger.warning(
            "Translation returned no checklist items; using the source list",
            extra={"build_id": source.id, "target_language": target_language},
        )
        build.build_items = list(source.build_items)

    created = builds.create_build(build)
    get_checklist_repository().link_build(created.hideout_id, created.id, created.build_items)

    logger.info(
        "Build translated",
        extra={
            "build_id": created.id,
            "source_build_id": source.id,
            "target_language": target_language,
        },
    )
    return json_response(_present(created, mode, language=target_language))
