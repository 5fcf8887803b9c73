"""
Name: Fake Build Services (Deterministic)

Responsibilities:
  - Translator/crafter determinísticos para tests, CI y dev sin API key.
  - Mantener la forma del payload canónico que devuelve el adapter real.

Collaborators:
  - domain.services.BuildTranslator / BuildCrafter (contratos)
  - container.py (se eligen cuando FAKE_LLM=true o falta GOOGLE_API_KEY)
"""

from __future__ import annotations

from typing import Any


class FakeBuildTranslator:
    """Marca los textos con el idioma destino: "[es] Título"."""

    def translate_build(
        self, build: dict[str, Any], target_language: str
    ) -> dict[str, Any]:
        tag = f"[{target_language}]"
        return {
            **build,
            "build_title": f"{tag} {build.get('build_title', '')}".strip(),
            "build_reasoning": f"{tag} {build.get('build_reasoning', '')}".strip(),
            "build_steps": [f"{tag} {step}" for step in build.get("build_steps", [])],
            "language": target_language,
        }


class FakeBuildCrafter:
    """Build fijo derivado del contexto (stash + arquetipo pedido)."""

    def craft_build(
        self, members: list[dict[str, Any]], context: dict[str, Any]
    ) -> dict[str, Any]:
        gems = [
            {"name": str(name), "quantity": "1", "unit": ""}
            for name in context.get("stash_gear_gems", [])
        ]
        names = ", ".join(str(m.get("name", "")) for m in members if m.get("name"))
        return {
            "analysis_log": "Fake crafter",
            "build_title": f"Crafted {context.get('requested_archetype', 'league_starter')}",
            "build_reasoning": f"Built for {names}" if names else "Built for the party",
            "gear_gems": gems,
            "build_items": [],
            "build_steps": ["Gather gems", "Level up"],
            "compliance_badge": True,
            "build_archetype": context.get("requested_archetype", "league_starter"),
            "build_cost_tier": context.get("cost_tier_preference", "medium"),
            "setup_time": "15 min"
            if context.get("setup_time_preference") == "quick"
            else "60 min",
            "language": context.get("language") or "en",
        }
