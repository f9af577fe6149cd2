"""
Single-Flight De-duplication

Concurrent callers asking for the same thing share one in-flight
coroutine. Used by the order stores so that a double-clicked "Cancel"
produces one write instead of two racing ones.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


class SingleFlight:
    """
    Share the result of one in-flight call among concurrent duplicates.

    Example:
        >>> flight = SingleFlight()
        >>> await flight.run(("o1", "Cancelled"), lambda: store._do_update(...))
    """

    def __init__(self) -> None:
        self._inflight: dict[Hashable, asyncio.Future] = {}

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run ``factory()`` unless an identical call is already running.

        Duplicates await the leader's result, or re-raise its exception.
        """
        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug(f"Joining in-flight call for {key!r}")
            return await asyncio.shield(existing)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so a lonely leader does not log "never retrieved"
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)
