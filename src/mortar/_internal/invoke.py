"""Invoke helpers — call sync or async collaborators uniformly.

Prompts and other application-supplied hooks can be ``def`` or
``async def``. Any code that calls one must handle both cases. This module
provides a single helper so the sync/async check lives in exactly one place.

Usage::

    from mortar._internal.invoke import invoke

    password = await invoke(prompt, entity, snapshot)
"""

import inspect
from typing import Any


async def invoke(hook: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a hook and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync — e.g. a terminal prompt
        def ask(entity, snapshot):
            return input("Password: ") or None

        # async — e.g. a modal that resolves when the visitor submits
        async def ask(entity, snapshot):
            return await modal.wait_for_password()
    """
    result = hook(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
