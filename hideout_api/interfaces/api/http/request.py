"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/request.py
===============================================================================

Class/Module:
    ApiRequest (snapshot inmutable del request HTTP)

Responsibilities:
    - Entregar a los handlers un request ya leído (método, path, query,
      headers, cookies y body crudo) sin acoplarlos a Starlette.
    - Parsear el body JSON con errores 400 uniformes.
    - Proveer json_response() para respuestas JSON simples.

Collaborators:
    - api/routing.py (construye el snapshot y awaitea el body)
    - handlers/* (consumen .json(), .cookies y .query_params)
===============================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from fastapi.responses import JSONResponse
from starlette.requests import Request

from hideout_api.crosscutting.error_responses import validation_error


@dataclass(frozen=True)
class ApiRequest:
    method: str
    path: str
    query_params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    async def from_starlette(cls, request: Request) -> "ApiRequest":
        """Lee el body una sola vez; el handler corre luego en el threadpool."""
        return cls(
            method=request.method.upper(),
            path=request.url.path,
            query_params=dict(request.query_params),
            headers=dict(request.headers),
            cookies=dict(request.cookies),
            body=await request.body(),
        )

    def json(self) -> dict[str, Any]:
        """
        Body como objeto JSON.

        - Body vacío -> {}
        - JSON inválido o que no sea objeto -> 400
        """
        if not self.body.strip():
            return {}
        try:
            payload = json.loads(self.body)
        except ValueError as exc:
            raise validation_error("Request body must be valid JSON") from exc
        if not isinstance(payload, dict):
            raise validation_error("Request body must be a JSON object")
        return payload

    def query(self, name: str, default: str | None = None) -> str | None:
        value = self.query_params.get(name)
        return value if value not in (None, "") else default


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code)
