"""Password verifiers — remote endpoint and local hash check.

``RemotePasswordVerifier`` is what a browser-facing deployment uses: the
hash never leaves the server, the client only learns ``isValid``.
``LocalPasswordVerifier`` checks the hash in-process for server-side
deployments and tests.
"""

import logging
from typing import Any

import httpx

from mortar.errors import TransportError
from mortar.protocols import EntityRepository
from mortar.security.passwords import verify_password

logger = logging.getLogger("mortar.gate")


class RemotePasswordVerifier:
    """POST ``{action: "verify", entityId, candidatePassword}`` and read ``isValid``.

    Any non-2xx status, transport failure, or malformed body is a
    ``TransportError``. The caller applies the wall-clock timeout.
    """

    __slots__ = ("_client", "_url")

    def __init__(self, url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self._url = url
        self._client = client

    async def verify(self, entity_id: str, candidate: str) -> bool:
        body = {"action": "verify", "entityId": entity_id, "candidatePassword": candidate}
        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=body)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            detail = str(exc) or type(exc).__name__
            raise TransportError("verify", detail, entity_id=entity_id) from exc

        if not response.is_success:
            logger.warning(
                "password endpoint returned %d entity=%s", response.status_code, entity_id
            )
            raise TransportError("verify", f"status {response.status_code}", entity_id=entity_id)

        try:
            data: Any = response.json()
        except ValueError as exc:
            raise TransportError("verify", "response is not JSON", entity_id=entity_id) from exc

        is_valid = data.get("isValid") if isinstance(data, dict) else None
        if not isinstance(is_valid, bool):
            raise TransportError("verify", "response has no isValid flag", entity_id=entity_id)
        return is_valid


class LocalPasswordVerifier:
    """Check the candidate against the entity's stored ``password_hash``."""

    __slots__ = ("_repository",)

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    async def verify(self, entity_id: str, candidate: str) -> bool:
        entity = await self._repository.get_by_id(entity_id)
        if entity is None or not entity.password_hash:
            return False
        try:
            return verify_password(candidate, entity.password_hash)
        except ValueError:
            logger.error("unreadable password hash entity=%s", entity_id)
            return False
