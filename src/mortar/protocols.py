"""Collaborator protocols.

The navigation core talks to storage, presence, rendering, modals, and the
password endpoint only through these shapes. No base class required. The
core checks the shape, not the lineage::

    class FirestoreRepository:
        async def get_by_id(self, entity_id: str) -> GraduationData | None: ...
        ...

    router = AuthenticatedRouter(repository=FirestoreRepository(), ...)
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Protocol, TypeAlias

from mortar.models import Actor, GraduationData, StudentRecord

if TYPE_CHECKING:
    from mortar.security.lockout import GateSnapshot

# Disposer returned by a realtime subscription
Unsubscribe: TypeAlias = Callable[[], None]

# Realtime push callback; ``None`` means the entity was deleted
DataCallback: TypeAlias = Callable[[GraduationData | None], None]

# Presence callback receiving the *other* active actor ids
OthersChanged: TypeAlias = Callable[[list[str]], None]

# Assigns a new fragment (e.g. ``window.location.hash = ...``)
Navigate: TypeAlias = Callable[[str], None]


class EntityRepository(Protocol):
    """Point reads, slug lookup, and realtime push for graduation projects.

    Reads raise ``mortar.errors.TransportError`` on transport failure and
    return ``None`` when the entity does not exist.
    """

    async def get_by_id(self, entity_id: str) -> GraduationData | None: ...

    async def get_by_slug(self, slug: str) -> GraduationData | None: ...

    def on_update(self, entity_id: str, callback: DataCallback) -> Unsubscribe: ...

    async def get_all_students(self, entity_id: str) -> Sequence[StudentRecord]: ...


class PresenceService(Protocol):
    """Tracks which actors are editing an entity."""

    def start_tracking(
        self, entity_id: str, actor_id: str, on_others_changed: OthersChanged | None
    ) -> None: ...

    def stop_tracking(self, entity_id: str, actor_id: str) -> None: ...

    def has_pending_local_changes(self, entity_id: str) -> bool: ...


class Renderer(Protocol):
    """Pure view functions. Invoked, never awaited for a result."""

    def loading(self) -> None: ...

    def login(self) -> None: ...

    def dashboard(self, actor: Actor) -> None: ...

    def new_graduation_form(self, actor: Actor) -> None: ...

    def editor(self, entity: GraduationData, actor: Actor) -> None: ...

    def collaborators(self, entity_id: str, other_actor_ids: list[str]) -> None: ...

    def public_view(self, entity: GraduationData, students: Sequence[StudentRecord]) -> None: ...

    def upload_portal(self, entity: GraduationData, students: Sequence[StudentRecord]) -> None: ...

    def direct_upload(self, entity: GraduationData, student: StudentRecord) -> None: ...


class Notifier(Protocol):
    """Modal and notice layer."""

    def show_modal(self, title: str, message: str) -> None: ...

    def notice(self, message: str, *, dismissible: bool = True) -> None: ...


class PasswordVerifier(Protocol):
    """Checks a candidate password for a protected entity.

    Returns ``False`` for a wrong password. Raises
    ``mortar.errors.TransportError`` when no answer could be obtained.
    """

    async def verify(self, entity_id: str, candidate: str) -> bool: ...


class PasswordPrompt(Protocol):
    """Asks the visitor for a password.

    Sync or async. Returns ``None`` when the visitor dismisses the prompt.
    """

    def __call__(
        self, entity: GraduationData, snapshot: "GateSnapshot"
    ) -> str | None | Awaitable[str | None]: ...
