"""
Name: Google Gemini Build Services (Adapter)

Qué hace
--------
Implementaciones de `domain.services.BuildTranslator` y `BuildCrafter` usando
Google GenAI (Gemini) con respuesta JSON:
  - Prompt compacto con el payload canónico + instrucciones
  - Reintentos de errores transitorios (tenacity, ver retry.py)
  - Mapeo de errores del proveedor a excepciones tipadas:
      * cuota agotada (429)          -> CraftQuotaExceededError (retry_after)
      * pedido fuera de dominio      -> CraftDomainMismatchError
      * cualquier otra falla         -> CraftError / TranslationError

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: GeminiBuildTranslator, GeminiBuildCrafter
Collaborators:
  - google.genai.Client (SDK externo)
  - retry.create_retry_decorator
  - crosscutting.exceptions
"""

from __future__ import annotations

import json
import re
from typing import Any

from google import genai

from ...crosscutting.exceptions import (
    CraftDomainMismatchError,
    CraftError,
    CraftQuotaExceededError,
    TranslationError,
)
from ...crosscutting.logger import logger
from .retry import QUOTA_STATUS, create_retry_decorator, get_http_status_code

_RETRY_DELAY = re.compile(r"retry(?:delay)?\W+(\d+(?:\.\d+)?)\s*s", re.IGNORECASE)

_JSON_CONFIG = {"response_mime_type": "application/json"}

_TRANSLATE_PROMPT = """You translate Path of Exile build guides.
Translate every human-readable text field of the JSON build below into the
language with code "{language}". Keep the JSON keys, numbers, enums
(build_archetype, build_cost_tier) and item names that are proper nouns.
Answer ONLY with the translated JSON object.

{payload}
"""

_CRAFT_PROMPT = """You design Path of Exile builds for a party.
Party members (with restrictions, likes and dislikes):
{members}

Session context:
{context}

Use the gems listed in stash_gear_gems when possible. Answer ONLY with a JSON
object with keys: analysis_log, build_title, build_reasoning, gear_gems,
build_items, build_steps, compliance_badge, build_archetype, build_cost_tier,
setup_time, setup_time_minutes, language.
If the request is not about Path of Exile builds, answer
{{"error": "domain_mismatch", "details": ["<reason>"]}}.
"""


def _retry_after_seconds(exc: BaseException) -> int | None:
    match = _RETRY_DELAY.search(str(exc))
    if not match:
        return None
    return max(1, int(float(match.group(1)) + 0.999))


def _parse_json(text: str) -> dict[str, Any]:
    payload = json.loads(text or "{}")
    if not isinstance(payload, dict):
        raise ValueError("Gemini response is not a JSON object")
    return payload


class _GeminiService:
    DEFAULT_MODEL_ID = "gemini-2.0-flash"

    def __init__(
        self,
        api_key: str,
        *,
        client: genai.Client | None = None,
        model_id: str | None = None,
        retry_decorator=None,
    ) -> None:
        if not (api_key or "").strip() and client is None:
            raise CraftError("GOOGLE_API_KEY not configured")
        self._client = client or genai.Client(api_key=api_key)
        self._model_id = (model_id or self.DEFAULT_MODEL_ID).strip()
        decorator = retry_decorator or create_retry_decorator()
        self._generate_content = decorator(self._client.models.generate_content)

    def _generate_json(self, prompt: str) -> dict[str, Any]:
        response = self._generate_content(
            model=self._model_id, contents=prompt, config=_JSON_CONFIG
        )
        return _parse_json(getattr(response, "text", "") or "")


class GeminiBuildTranslator(_GeminiService):
    def translate_build(
        self, build: dict[str, Any], target_language: str
    ) -> dict[str, Any]:
        prompt = _TRANSLATE_PROMPT.format(
            language=target_language,
            payload=json.dumps(build, ensure_ascii=False, default=str),
        )
        try:
            translated = self._generate_json(prompt)
        except Exception as exc:
            logger.error(
                "GeminiBuildTranslator: translation failed",
                exc_info=True,
                extra={"model_id": self._model_id, "target_language": target_language},
            )
            raise TranslationError("Failed to translate build", original_error=exc) from exc

        logger.info(
            "GeminiBuildTranslator: build translated",
            extra={"model_id": self._model_id, "target_language": target_language},
        )
        return {**translated, "language": target_language}


class GeminiBuildCrafter(_GeminiService):
    def craft_build(
        self, members: list[dict[str, Any]], context: dict[str, Any]
    ) -> dict[str, Any]:
        prompt = _CRAFT_PROMPT.format(
            members=json.dumps(members, ensure_ascii=False, default=str),
            context=json.dumps(context, ensure_ascii=False, default=str),
        )
        try:
            crafted = self._generate_json(prompt)
        except Exception as exc:
            if get_http_status_code(exc) == QUOTA_STATUS:
                retry_after = _retry_after_seconds(exc)
                logger.warning(
                    "GeminiBuildCrafter: quota exceeded",
                    extra={"model_id": self._model_id, "retry_after": retry_after},
                )
                raise CraftQuotaExceededError(
                    "Gemini quota exceeded", retry_after=retry_after, original_error=exc
                ) from exc
            logger.error(
                "GeminiBuildCrafter: craft failed",
                exc_info=True,
                extra={"model_id": self._model_id, "error_type": type(exc).__name__},
            )
            raise CraftError("Failed to craft build", original_error=exc) from exc

        if crafted.get("error") == "domain_mismatch":
            details = [str(d) for d in crafted.get("details") or []]
            raise CraftDomainMismatchError(
                "Request is outside the supported build domain", details=details
            )

        logger.info("GeminiBuildCrafter: build crafted", extra={"model_id": self._model_id})
        return crafted
