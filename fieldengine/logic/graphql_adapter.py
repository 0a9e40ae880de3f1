"""GraphQL-over-HTTP persistence adapter.

Posts ``{query, variables}`` to a GraphQL endpoint with ``httpx`` and
returns the value at ``result_path`` inside the response ``data``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from fieldengine.logic.errors import PersistenceError
from fieldengine.logic.persistence import MutationOperation, decode_id, encode_id, extract_path

logger = logging.getLogger(__name__)


class GraphQLPersistenceAdapter:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout), headers=headers)

    def encode_id(self, type_name: str, raw_id: str) -> str:
        return encode_id(type_name, raw_id)

    def decode_id(self, global_id: Optional[str]) -> Optional[str]:
        return decode_id(global_id)

    async def mutate(self, operation: MutationOperation, variables: Dict[str, Any], result_path: str) -> Any:
        body = {"query": operation.query, "variables": variables}
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "graphql.http_error operation=%s status=%s", operation.name, exc.response.status_code
            )
            raise PersistenceError(
                f"{operation.name} failed with HTTP {exc.response.status_code}", operation=operation.name
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("graphql.transport_error operation=%s error=%s", operation.name, exc)
            raise PersistenceError(f"{operation.name} failed: {exc}", operation=operation.name) from exc
        except ValueError as exc:
            raise PersistenceError(f"{operation.name} returned invalid JSON", operation=operation.name) from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            logger.warning("graphql.errors operation=%s count=%s", operation.name, len(errors))
            raise PersistenceError(
                "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors),
                operation=operation.name,
                errors=errors,
            )
        return extract_path(payload.get("data") if isinstance(payload, dict) else None, result_path)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["GraphQLPersistenceAdapter"]
