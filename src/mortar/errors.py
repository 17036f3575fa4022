"""Mortar exception hierarchy.

Shared across the codec, resolver, access gate, coordinator, and routers
so every module raises and catches the same types.
"""

from dataclasses import dataclass


class MortarError(Exception):
    """Base for all mortar-specific errors."""


class ConfigurationError(MortarError):
    """Raised when router configuration is invalid."""


@dataclass(frozen=True, slots=True)
class AccessError(MortarError):
    """An access outcome that stops a navigation.

    Routers recover these locally: authenticated routes redirect to the
    dashboard, public routes show a modal.
    """

    reason: str
    detail: str = ""
    entity_id: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason}: {self.detail}"
        return self.reason


class NotFound(AccessError):  # noqa: N818
    """Entity or slug absent."""

    def __init__(self, detail: str = "Not Found", *, entity_id: str | None = None) -> None:
        super().__init__(reason="not_found", detail=detail, entity_id=entity_id)


class Unauthorized(AccessError):  # noqa: N818
    """No signed-in actor on an authenticated route."""

    def __init__(self, detail: str = "Sign-in required") -> None:
        super().__init__(reason="unauthorized", detail=detail)


class Forbidden(AccessError):  # noqa: N818
    """Signed in, but not an editor or owner (or removed mid-session)."""

    def __init__(self, detail: str = "Access denied", *, entity_id: str | None = None) -> None:
        super().__init__(reason="forbidden", detail=detail, entity_id=entity_id)


class Locked(AccessError):  # noqa: N818
    """Submissions are closed for this entity."""

    def __init__(self, detail: str = "Submissions closed", *, entity_id: str | None = None) -> None:
        super().__init__(reason="locked", detail=detail, entity_id=entity_id)


class InvalidLink(AccessError):  # noqa: N818
    """Direct-upload link token matches no student."""

    def __init__(self, detail: str = "Invalid link", *, entity_id: str | None = None) -> None:
        super().__init__(reason="invalid_link", detail=detail, entity_id=entity_id)


class TransportError(MortarError):
    """A repository or network call failed before producing an answer.

    Callers degrade to the not-found outcome, but log with this tag so the
    two cases stay distinguishable.
    """

    def __init__(
        self,
        operation: str,
        detail: str = "",
        *,
        entity_id: str | None = None,
    ) -> None:
        self.operation = operation
        self.detail = detail
        self.entity_id = entity_id
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class VerificationTimeout(TransportError):
    """A password verification exceeded its wall-clock bound."""

    def __init__(self, timeout: float, *, entity_id: str | None = None) -> None:
        self.timeout = timeout
        super().__init__("verify", f"timed out after {timeout:g}s", entity_id=entity_id)


class TooManyAttempts(MortarError):  # noqa: N818
    """Password submissions are suspended until the lockout elapses."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Too many attempts. Retry after {retry_after}s.")


class VerificationInProgress(MortarError):  # noqa: N818
    """A second submit arrived while one verification is still in flight."""

    def __init__(self) -> None:
        super().__init__("Verification already in progress.")
