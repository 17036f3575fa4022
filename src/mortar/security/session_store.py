"""Signed persistence of password-gate state.

Gate state is serialized as JSON and signed using ``itsdangerous``, the
same way a session cookie is. A visitor who verified an entity's password
stays verified across reloads until the token expires; a visitor serving
a lockout cannot clear it by reloading.
"""

import logging
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from mortar.config import RouterConfig
from mortar.errors import ConfigurationError
from mortar.security.lockout import PasswordGates

logger = logging.getLogger("mortar.gate")

_SALT = "mortar.password-gate"


class GateSessionStore:
    """Dump and load ``PasswordGates`` state as a signed, timestamped token."""

    __slots__ = ("_max_age", "_serializer")

    def __init__(self, config: RouterConfig) -> None:
        if not config.secret_key:
            msg = "GateSessionStore requires RouterConfig.secret_key to be set."
            raise ConfigurationError(msg)
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=_SALT)
        self._max_age = config.session_max_age

    def dumps(self, gates: PasswordGates) -> str:
        return self._serializer.dumps(gates.export())

    def loads(self, token: str | None, gates: PasswordGates) -> bool:
        """Restore *gates* from *token*. Returns ``False`` if the token was rejected."""
        if not token:
            return False
        try:
            data: Any = self._serializer.loads(token, max_age=self._max_age)
        except BadSignature:
            # SignatureExpired subclasses BadSignature
            logger.info("discarding gate session token: invalid or expired")
            return False
        if not isinstance(data, dict):
            return False
        gates.restore(data)
        return True
