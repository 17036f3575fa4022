"""Tests for slug helpers and identifier resolution."""

import logging

import pytest

from mortar.models import GraduationData
from mortar.routing.resolver import (
    IdentifierResolver,
    extract_id_from_slug,
    generate_slug,
    is_slug,
)
from mortar.testing import InMemoryRepository

SLUG = "lincoln-high-school-2024-abc12345"


def _repo() -> InMemoryRepository:
    return InMemoryRepository([GraduationData(id="xyzabc12345", url_slug=SLUG)])


def test_is_slug() -> None:
    assert is_slug(SLUG)
    assert not is_slug("xyzabc12345")
    assert not is_slug("two-parts")
    assert not is_slug("")
    assert not is_slug(None)


def test_generate_slug() -> None:
    assert generate_slug("Lincoln High School", 2024, "xyzabc12345") == SLUG


def test_generate_slug_strips_punctuation() -> None:
    assert generate_slug("  St. Mary's -- Academy ", "2025", "id987654321") == (
        "st-marys-academy-2025-87654321"
    )


def test_extract_id_from_slug() -> None:
    assert extract_id_from_slug(SLUG) == "abc12345"
    assert extract_id_from_slug("plainid") == "plainid"
    assert extract_id_from_slug("") is None


@pytest.mark.anyio
async def test_id_resolves_without_lookup() -> None:
    repo = _repo()
    resolver = IdentifierResolver(repo)
    assert await resolver.resolve("xyzabc12345") == "xyzabc12345"
    assert await resolver.resolve("xyzabc12345") == "xyzabc12345"
    assert repo.calls == []


@pytest.mark.anyio
async def test_slug_resolves_with_one_lookup() -> None:
    repo = _repo()
    assert await IdentifierResolver(repo).resolve(SLUG) == "xyzabc12345"
    assert repo.calls == [("get_by_slug", SLUG)]


@pytest.mark.anyio
async def test_unknown_slug_is_none() -> None:
    assert await IdentifierResolver(_repo()).resolve("no-such-school-2024-deadbeef") is None


@pytest.mark.anyio
async def test_empty_identifier_is_none() -> None:
    assert await IdentifierResolver(_repo()).resolve("") is None


@pytest.mark.anyio
async def test_transport_failure_is_logged_distinctly(caplog: pytest.LogCaptureFixture) -> None:
    repo = _repo()
    repo.fail("get_by_slug")
    with caplog.at_level(logging.INFO, logger="mortar.resolver"):
        assert await IdentifierResolver(repo).resolve(SLUG) is None
    assert any(
        r.levelno == logging.WARNING and "reason=transport" in r.getMessage()
        for r in caplog.records
    )
