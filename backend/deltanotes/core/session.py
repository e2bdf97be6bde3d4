"""Task scoping for in-process editing sessions (see ``EditorSession``).

Request handling in the HTTP API does not need it: each request awaits its
own calls and the server owns cancellation.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

from deltanotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

logger = get_logger(__name__)

T = TypeVar("T")


class SessionScope:
    """Owns the tasks started on behalf of one editing or request session.

    ``run`` awaits an operation as a task tied to this scope. Closing the
    scope cancels whatever is still in flight; those callers get ``None`` back
    and nothing about the abandoned work is retained.
    """

    def __init__(self, name: str = "session") -> None:
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def run(self, operation: Coroutine[Any, Any, T]) -> T | None:
        if self._closed:
            operation.close()
            logger.debug("Session %s closed; discarding operation", self.name)
            return None

        task = asyncio.ensure_future(operation)
        self._tasks.add(task)
        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._closed:
                return None
            # The awaiting caller itself was cancelled; stop the work too
            task.cancel()
            raise
        finally:
            self._tasks.discard(task)

        if self._closed:
            logger.debug("Session %s closed while awaiting; result discarded", self.name)
            return None
        return result

    async def close(self) -> None:
        """Cancel in-flight work and reject anything scheduled afterwards."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> SessionScope:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
