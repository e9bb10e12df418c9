from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRunner:
    """Runs coroutines from synchronous code on one long-lived event loop.

    The loop lives on a daemon thread so a loop-bound client (Motor) is shared
    by every request. ``run(timeout=...)`` only stops *waiting*: the coroutine
    keeps running on the loop and its writes may still land.
    """

    def __init__(self, *, default_timeout: Optional[float] = None):
        self._default_timeout = default_timeout
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._serve, name="college-attendance-loop", daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Coroutine[Any, Any, T], *, timeout: Optional[float] = None) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        wait = timeout if timeout is not None else self._default_timeout
        try:
            return future.result(timeout=wait)
        except concurrent.futures.TimeoutError:
            logger.warning("Gave up waiting after %ss; the operation keeps running", wait)
            raise

    def close(self) -> None:
        if self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
        self._loop.close()
