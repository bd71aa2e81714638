"""
Execution strategy for test operations.

The four call shapes (sync/async x with/without session) are one generic
``invoke`` parameterized by an ``ExecutionMode`` and an optional session.
``invoke_sync`` is the SYNC shape for callers that have no event loop.
Operations only describe *what* to call through an ``Invocation``; the
shape never changes the bound arguments, so every shape sends the
collaborator the same filter and options.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from jsondriven.core.cancellation import CancellationToken
from jsondriven.exceptions import InvalidOperationState, OperationCancelled

logger = logging.getLogger(__name__)


class ExecutionMode(str, Enum):
    SYNC = "sync"
    ASYNC = "async"

    @classmethod
    def parse(cls, value: Union["ExecutionMode", str]) -> "ExecutionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid execution mode: {value!r}. Expected one of: {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True)
class Invocation:
    """A collaborator call built from an operation's bound arguments."""
    method: str
    args: Tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def call_kwargs(self, session: Any = None) -> Dict[str, Any]:
        kwargs = dict(self.kwargs)
        if session is not None:
            kwargs["session"] = session
        return kwargs


@dataclass(frozen=True)
class CallTargets:
    """The synchronous and asynchronous faces of the same collection."""
    sync: Any = None
    asynchronous: Any = None

    def resolve(self, mode: ExecutionMode, method: str):
        target = self.sync if mode is ExecutionMode.SYNC else self.asynchronous
        if target is None:
            raise InvalidOperationState(f"No {mode.value} collection configured for '{method}'.")
        return getattr(target, method)


def invoke_sync(
    invocation: Invocation,
    targets: CallTargets,
    session: Any = None,
    cancellation: Optional[CancellationToken] = None,
) -> Any:
    """
    Runs the SYNC call shape on the caller's thread and returns the outcome.

    Needs no event loop. The token is checked once, before the call; a
    blocking sync call cannot be interrupted once it has started.

    Raises:
        OperationCancelled: If the token is cancelled before the call
    """
    cancellation = cancellation or CancellationToken.none()
    cancellation.raise_if_cancelled()

    method = targets.resolve(ExecutionMode.SYNC, invocation.method)
    kwargs = invocation.call_kwargs(session)
    logger.debug(
        f"Invoking {invocation.method}",
        extra={'mode': ExecutionMode.SYNC.value, 'with_session': session is not None}
    )
    return method(*invocation.args, **kwargs)


async def invoke(
    invocation: Invocation,
    mode: ExecutionMode,
    targets: CallTargets,
    session: Any = None,
    cancellation: Optional[CancellationToken] = None,
) -> Any:
    """
    Runs exactly one call shape from a coroutine and returns the collaborator's outcome.

    Args:
        invocation: Method name and arguments to send
        mode: SYNC runs the sync collection in the default executor, ASYNC awaits the async one
        targets: Sync and async collection objects
        session: Session handle passed as ``session=`` when given
        cancellation: Checked before the call; forwarded to async calls

    Raises:
        OperationCancelled: If the token is cancelled before the call, or during an async call
    """
    cancellation = cancellation or CancellationToken.none()
    cancellation.raise_if_cancelled()

    if mode is ExecutionMode.SYNC:
        # Blocking collaborators run off the loop so other tasks keep going
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(invoke_sync, invocation, targets, session, cancellation)
        )

    method = targets.resolve(mode, invocation.method)
    kwargs = invocation.call_kwargs(session)
    logger.debug(
        f"Invoking {invocation.method}",
        extra={'mode': mode.value, 'with_session': session is not None}
    )
    return await _await_with_cancellation(method(*invocation.args, **kwargs), cancellation)


async def _await_with_cancellation(awaitable, cancellation: CancellationToken) -> Any:
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(awaitable)
    unregister = cancellation.register(lambda: loop.call_soon_threadsafe(task.cancel))
    try:
        return await task
    except asyncio.CancelledError:
        if cancellation.cancelled:
            raise OperationCancelled("Operation was cancelled during the call.", during_call=True) from None
        raise
    finally:
        unregister()
