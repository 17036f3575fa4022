"""Entity, student, and actor records.

Only the fields the navigation core inspects are modelled; anything else the
storage layer keeps rides along in ``config``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Actor:
    """A signed-in user."""

    uid: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class GraduationData:
    """A graduation project as read from the repository.

    ``owner_uid`` is the legacy single-owner field. Projects created before
    multi-editor support only carry that, so access checks consult both.
    """

    id: str
    editors: frozenset[str] = frozenset()
    owner_uid: str | None = None
    is_locked: bool = False
    password_hash: str | None = None
    url_slug: str | None = None
    school_name: str = ""
    graduation_year: int | None = None
    config: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_password_protected(self) -> bool:
        return bool(self.password_hash)


@dataclass(frozen=True, slots=True)
class StudentRecord:
    """A student within a graduation project."""

    id: str
    name: str
    unique_link_token: str | None = None
