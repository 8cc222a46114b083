"""Turn fallible calls into values.

``safe_call`` / ``safe_await`` run a zero-argument callable and return an
``Outcome`` holding either the result or the captured exception, never
both. Handlers use them around record store and token issuer calls so a
collaborator failure can be re-classified instead of leaking out.
"""
from typing import Any, Awaitable, Callable, NamedTuple, Optional


class Outcome(NamedTuple):
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def safe_call(fn: Callable[[], Any]) -> Outcome:
    """Run ``fn()`` and capture any ``Exception`` it raises."""
    try:
        return Outcome(fn(), None)
    except Exception as e:
        return Outcome(None, e)


async def safe_await(fn: Callable[[], Awaitable[Any]]) -> Outcome:
    """Await ``fn()`` and capture any ``Exception`` it raises.

    Cancellation and other ``BaseException`` subclasses still propagate.
    """
    try:
        return Outcome(await fn(), None)
    except Exception as e:
        return Outcome(None, e)
