"""Test utilities for mortar applications.

In-memory collaborators and outcome assertions::

    from mortar.testing import InMemoryRepository, RecordingRenderer, assert_denied
"""

from mortar.testing.assertions import (
    assert_denied,
    assert_redirected,
    assert_rendered,
    assert_subscribed,
)
from mortar.testing.fakes import (
    FakeClock,
    InMemoryRepository,
    NavigationLog,
    RecordingNotifier,
    RecordingRenderer,
    ScriptedPrompt,
    StaticVerifier,
)

__all__ = [
    "FakeClock",
    "InMemoryRepository",
    "NavigationLog",
    "RecordingNotifier",
    "RecordingRenderer",
    "ScriptedPrompt",
    "StaticVerifier",
    "assert_denied",
    "assert_redirected",
    "assert_rendered",
    "assert_subscribed",
]
