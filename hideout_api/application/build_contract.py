"""
===============================================================================
TARJETA CRC — application/build_contract.py (Contrato de payload de builds)
===============================================================================

Responsabilidades:
  - Normalizar payloads de entrada en cualquiera de los dos vocabularios
    (build_* actual o recipe-era) a un dict canónico.
  - Serializar un build al dialecto pedido (ResponseMode).
  - Traducir enums legacy (meal_type, difficulty) a los canónicos y viceversa.
  - Reemplazar tokens de enum en el texto narrativo por labels en/pt.

Colaboradores:
  - application/response_mode.ResponseMode
  - interfaces/api/http/handlers/builds.py y craft.py

Reglas:
  - La normalización es independiente del modo: un cliente legacy puede
    mandar campos canónicos y viceversa.
  - Valores desconocidos caen en defaults estables (league_starter / medium).
===============================================================================
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from .response_mode import ResponseMode

_LEGACY_TO_CANONICAL_ARCHETYPE: dict[str, str] = {
    "main": "league_starter",
    "main_course": "league_starter",
    "maincourse": "league_starter",
    "appetizer": "mapper",
    "starter": "mapper",
    "dessert": "bossing",
    "snack": "hybrid",
    "league_starter": "league_starter",
    "mapper": "mapper",
    "bossing": "bossing",
    "hybrid": "hybrid",
}

_CANONICAL_TO_LEGACY_ARCHETYPE: dict[str, str] = {
    "league_starter": "main",
    "mapper": "appetizer",
    "bossing": "dessert",
    "hybrid": "snack",
}

_LEGACY_TO_CANONICAL_COST_TIER: dict[str, str] = {
    "cheap": "cheap",
    "medium": "medium",
    "expensive": "expensive",
    "mirror_of_kalandra": "mirror_of_kalandra",
    "mirror": "mirror_of_kalandra",
    "barato": "cheap",
    "medio": "medium",
    "médio": "medium",
    "caro": "expensive",
    "easy": "cheap",
    "intermediate": "medium",
    "advanced": "expensive",
    "ascendant": "mirror_of_kalandra",
    "chef": "mirror_of_kalandra",
}

_CANONICAL_TO_LEGACY_DIFFICULTY: dict[str, str] = {
    "cheap": "easy",
    "medium": "intermediate",
    "expensive": "advanced",
    "mirror_of_kalandra": "chef",
}

_WHITESPACE = re.compile(r"\s+")

# Tokens de enum que la IA deja en texto narrativo -> clave de label.
_NARRATIVE_TOKENS: dict[str, tuple[str, ...]] = {
    "league_starter": ("league_starter", "league starter", "main_course", "maincourse"),
    "mapper": ("mapper",),
    "bossing": ("bossing",),
    "hybrid": ("hybrid",),
    "cheap": ("cheap",),
    "medium": ("medium",),
    "expensive": ("expensive",),
    "mirror_of_kalandra": ("mirror_of_kalandra", "mirror of kalandra", "ascendant", "chef"),
}

_NARRATIVE_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "league_starter": "League Starter",
        "mapper": "Mapper",
        "bossing": "Bossing",
        "hybrid": "Hybrid",
        "cheap": "Cheap",
        "medium": "Medium",
        "expensive": "Expensive",
        "mirror_of_kalandra": "Mirror of Kalandra",
    },
    "pt": {
        "league_starter": "League Starter",
        "mapper": "Mapper",
        "bossing": "Bossing",
        "hybrid": "Hybrid",
        "cheap": "Barato",
        "medium": "Médio",
        "expensive": "Caro",
        "mirror_of_kalandra": "Mirror of Kalandra",
    },
}

# R: primero la variante entre comillas (se comen las comillas), luego la suelta.
_NARRATIVE_PATTERNS: tuple[tuple[str, re.Pattern[str], re.Pattern[str]], ...] = tuple(
    (
        key,
        re.compile(rf"([\"'])\s*{re.escape(variant)}\s*\1", re.IGNORECASE),
        re.compile(rf"\b{re.escape(variant)}\b", re.IGNORECASE),
    )
    for key, variants in _NARRATIVE_TOKENS.items()
    for variant in variants
)


def _enum_key(value: Any) -> str:
    return _WHITESPACE.sub("_", str(value or "").strip().lower())


def normalize_build_archetype(value: Any) -> str:
    return _LEGACY_TO_CANONICAL_ARCHETYPE.get(_enum_key(value), "league_starter")


def to_legacy_archetype(value: str) -> str:
    return _CANONICAL_TO_LEGACY_ARCHETYPE.get(value, "main")


def normalize_build_cost_tier(value: Any) -> str:
    return _LEGACY_TO_CANONICAL_COST_TIER.get(_enum_key(value), "medium")


def to_legacy_difficulty(value: str) -> str:
    return _CANONICAL_TO_LEGACY_DIFFICULTY.get(value, "intermediate")


def normalize_setup_time_preference(value: Any) -> str:
    return "plenty" if str(value or "").strip().lower() == "plenty" else "quick"


def parse_maybe_json(value: Any) -> Any:
    """Los formularios legacy mandan listas como JSON string."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _first(raw: dict[str, Any], *keys: str) -> Any:
    # Primer valor no-None (equivalente a ??)
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _normalize_entry(raw: Any) -> dict[str, str]:
    if not raw:
        return {"name": "", "quantity": "", "unit": ""}
    if isinstance(raw, str):
        parsed = parse_maybe_json(raw)
        if not isinstance(parsed, dict):
            return {"name": raw, "quantity": "", "unit": ""}
        raw = {**parsed, "name": parsed.get("name") or raw}
    if not isinstance(raw, dict):
        return {"name": str(raw), "quantity": "", "unit": ""}
    return {
        "name": str(raw.get("name") or ""),
        "quantity": str(raw.get("quantity") or ""),
        "unit": str(raw.get("unit") or ""),
    }


def _normalize_entries(raw: Any) -> list[dict[str, str]]:
    raw = parse_maybe_json(raw)
    if not isinstance(raw, list):
        return []
    entries = [_normalize_entry(item) for item in raw]
    return [e for e in entries if e["name"].strip()]


def _normalize_steps(raw: Any) -> list[str]:
    raw = parse_maybe_json(raw)
    if not isinstance(raw, list):
        return []
    steps: list[str] = []
    for step in raw:
        if isinstance(step, str):
            text = step.strip()
        elif isinstance(step, dict) and isinstance(step.get("text"), str):
            text = step["text"].strip()
        else:
            text = ""
        if text:
            steps.append(text)
    return steps


def _normalize_translations(raw: Any) -> list[dict[str, str]]:
    raw = parse_maybe_json(raw)
    if not isinstance(raw, list):
        return []
    translations = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("id"):
            continue
        translations.append(
            {
                "id": str(item["id"]),
                "language": str(item.get("language") or "en"),
                "build_title": str(
                    item.get("build_title") or item.get("recipe_title") or ""
                ),
            }
        )
    return translations


def _normalize_minutes(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        minutes = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(minutes):
        return None
    return int(minutes)


def normalize_build_payload(raw: dict[str, Any] | None) -> dict[str, Any]:
    """
    Normaliza un payload (request, fila o respuesta de IA) al vocabulario canónico.

    Acepta ambos vocabularios y listas serializadas como JSON string.
    """
    raw = raw or {}
    cost_tier = normalize_build_cost_tier(
        _first(raw, "build_cost_tier", "build_complexity", "difficulty")
    )
    is_favorite = raw.get("isFavorite")
    badge = _first(raw, "compliance_badge", "safety_badge")
    return {
        "id": raw.get("id"),
        "analysis_log": str(raw.get("analysis_log") or "Manual Entry"),
        "build_title": str(raw.get("build_title") or raw.get("recipe_title") or ""),
        "build_reasoning": str(
            raw.get("build_reasoning") or raw.get("match_reasoning") or ""
        ),
        "gear_gems": _normalize_entries(
            _first(raw, "gear_gems", "ingredients_from_pantry")
        ),
        "build_items": _normalize_entries(_first(raw, "build_items", "shopping_list")),
        "build_steps": _normalize_steps(_first(raw, "build_steps", "step_by_step")),
        "compliance_badge": True if badge is None else bool(badge),
        "build_archetype": normalize_build_archetype(
            _first(raw, "build_archetype", "meal_type")
        ),
        "build_cost_tier": cost_tier,
        "build_complexity": cost_tier,
        "setup_time": str(raw.get("setup_time") or raw.get("prep_time") or ""),
        "setup_time_minutes": _normalize_minutes(
            _first(raw, "setup_time_minutes", "prep_time_minutes")
        ),
        "build_image": raw.get("build_image") or raw.get("dishImage") or None,
        "language": raw.get("language") or None,
        "isFavorite": is_favorite if isinstance(is_favorite, bool) else False,
        "createdAt": raw.get("createdAt"),
        "originalBuildId": _first(raw, "originalBuildId", "originalRecipeId"),
        "translations": _normalize_translations(raw.get("translations")),
    }


def sanitize_narrative_text(value: Any, language: str | None = None) -> str:
    """Reemplaza tokens de enum ("mirror_of_kalandra") por su label legible."""
    lang = "pt" if str(language or "").lower().startswith("pt") else "en"
    labels = _NARRATIVE_LABELS[lang]
    text = "" if value is None else str(value)
    for key, quoted, plain in _NARRATIVE_PATTERNS:
        text = quoted.sub(labels[key], text)
        text = plain.sub(labels[key], text)
    return text


def sanitize_narrative_fields(
    build: dict[str, Any], language: str | None = None
) -> dict[str, Any]:
    """analysis_log, build_reasoning y build_steps; el resto no se toca."""
    steps = build.get("build_steps")
    return {
        **build,
        "analysis_log": sanitize_narrative_text(build.get("analysis_log"), language),
        "build_reasoning": sanitize_narrative_text(build.get("build_reasoning"), language),
        "build_steps": [sanitize_narrative_text(s, language) for s in steps]
        if isinstance(steps, list)
        else steps,
    }


def serialize_build_payload(
    raw: dict[str, Any],
    mode: ResponseMode = ResponseMode.CANONICAL,
    response_language: str | None = None,
) -> dict[str, Any]:
    """
    Serializa un build al dialecto pedido.

    CANONICAL devuelve solo el vocabulario build_*. LEGACY devuelve el mismo
    payload más los alias recipe-era que los clientes viejos siguen leyendo.
    En ambos modos el texto narrativo sale con labels en el idioma de la
    respuesta (response_language, o el del build).
    """
    normalized = normalize_build_payload(raw)
    build = sanitize_narrative_fields(
        normalized, response_language or normalized["language"]
    )
    if not mode.is_legacy:
        return build

    return {
        **build,
        "recipe_title": build["build_title"],
        "match_reasoning": build["build_reasoning"],
        "ingredients_from_pantry": build["gear_gems"],
        "shopping_list": build["build_items"],
        "step_by_step": build["build_steps"],
        "safety_badge": build["compliance_badge"],
        "meal_type": to_legacy_archetype(build["build_archetype"]),
        "difficulty": to_legacy_difficulty(build["build_cost_tier"]),
        "prep_time": build["setup_time"],
        "prep_time_minutes": build["setup_time_minutes"],
        "dishImage": build["build_image"],
        "originalRecipeId": build["originalBuildId"],
        "translations": [
            {**item, "recipe_title": item["build_title"]}
            for item in build["translations"]
        ],
    }


def normalize_session_context(raw: dict[str, Any] | None) -> dict[str, Any]:
    """Contexto de generación (craft) en vocabulario canónico."""
    raw = raw or {}
    cost_tier = normalize_build_cost_tier(
        raw.get("cost_tier_preference")
        or raw.get("build_complexity")
        or raw.get("difficulty_preference")
        or raw.get("difficulty")
    )

    def _list(*keys: str) -> list[Any]:
        for key in keys:
            if isinstance(raw.get(key), list):
                return list(raw[key])
        return []

    return {
        "party_member_ids": _list("party_member_ids", "who_is_eating"),
        "stash_gear_gems": _list("stash_gear_gems", "pantry_ingredients"),
        "requested_archetype": normalize_build_archetype(
            raw.get("requested_archetype") or raw.get("requested_type")
        ),
        "cost_tier_preference": cost_tier,
        "setup_time_preference": normalize_setup_time_preference(
            raw.get("setup_time_preference") or raw.get("prep_time_preference")
        ),
        "build_notes": raw.get("build_notes") or raw.get("observation") or "",
        "language": raw.get("language"),
    }
