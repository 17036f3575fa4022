"""Identifier resolution — slug or opaque id to canonical entity id.

Slugs are built from the school name, graduation year, and the tail of the
entity id (``lincoln-high-school-2024-abc12345``). Opaque ids never contain
enough hyphens to look like one, so resolution only touches the repository
when it has to.
"""

import logging
import re

from mortar.errors import TransportError
from mortar.protocols import EntityRepository

logger = logging.getLogger("mortar.resolver")

_SHORT_ID_LENGTH = 8
_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUN = re.compile(r"-+")


def is_slug(identifier: str | None) -> bool:
    """True if *identifier* has at least two hyphens (three or more words)."""
    return bool(identifier) and "-" in identifier and len(identifier.split("-")) > 2


def generate_slug(school_name: str, graduation_year: int | str, entity_id: str) -> str:
    """Build a URL-friendly slug.

    Example::

        generate_slug("Lincoln High School", 2024, "xyzabc12345")
        # "lincoln-high-school-2024-abc12345"
    """
    name = _NON_WORD.sub("", school_name.lower().strip())
    name = _WHITESPACE.sub("-", name)
    name = _HYPHEN_RUN.sub("-", name).strip("-")
    short_id = entity_id[-_SHORT_ID_LENGTH:]
    return f"{name}-{graduation_year}-{short_id}"


def extract_id_from_slug(slug: str | None) -> str | None:
    """Return the trailing short id of a slug, or the input if it has no hyphens."""
    if not slug:
        return None
    return slug.split("-")[-1]


class IdentifierResolver:
    """Map a slug or id to a canonical entity id.

    Resolving an id is free and idempotent. Resolving a slug performs
    exactly one ``get_by_slug`` lookup.
    """

    __slots__ = ("_repository",)

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    async def resolve(self, identifier: str | None) -> str | None:
        """Return the canonical id, or ``None`` if nothing matches.

        A transport failure during the slug lookup also yields ``None``;
        it is logged at WARNING so it can be told apart from a plain miss.
        """
        if not identifier:
            return None
        if not is_slug(identifier):
            return identifier

        try:
            entity = await self._repository.get_by_slug(identifier)
        except TransportError as exc:
            logger.warning(
                "slug lookup failed slug=%s reason=transport error=%s", identifier, exc
            )
            return None

        if entity is None:
            logger.info("slug lookup missed slug=%s reason=not_found", identifier)
            return None
        return entity.id
