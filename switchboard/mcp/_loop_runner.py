import asyncio
import threading
from typing import Any, Coroutine, Optional


class LoopRunner:
    """
    Runs coroutines on one event loop owned by a dedicated thread.

    The sessions of MCP connections are bound to the event loop they were opened on. The
    runner keeps that loop alive across calls, so that synchronous callers, or callers
    on other event loops, can drive the same connections one call after another.
    """

    _name: str

    _lock: threading.Lock
    _thread: Optional[threading.Thread]
    _loop: Optional[asyncio.AbstractEventLoop]
    _shutdown: bool

    def __init__(self, name: str = "switchboard-loop"):
        self._name = name
        self._lock = threading.Lock()
        self._thread = None
        self._loop = None
        self._shutdown = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def run_sync(
        self,
        coro: Coroutine[Any, Any, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Submit a coroutine to the runner's event loop and block until its result.

        Parameters
        ----------
        coro : Coroutine
            The coroutine to run.
        timeout : Optional[float]
            Timeout in seconds. If None, no timeout.

        Returns
        -------
        Any
            The result of the coroutine execution.

        Raises
        ------
        RuntimeError
            If the runner has been shut down, or if called from the runner's own thread.
        TimeoutError
            If the coroutine execution times out. The coroutine is cancelled.
        """
        loop = self._ensure_loop_running(coro)
        if threading.current_thread() is self._thread:
            coro.close()
            raise RuntimeError(f"LoopRunner-[{self._name}].run_sync() called from its own loop thread")

        future = asyncio.run_coroutine_threadsafe(coro, loop)
        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            future.cancel()
            raise

    async def run_async(
        self,
        coro: Coroutine[Any, Any, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Submit a coroutine to the runner's event loop and await its result from another
        event loop, without blocking it.

        Parameters
        ----------
        coro : Coroutine
            The coroutine to run.
        timeout : Optional[float]
            Timeout in seconds. If None, no timeout.

        Returns
        -------
        Any
            The result of the coroutine execution.

        Raises
        ------
        RuntimeError
            If the runner has been shut down.
        asyncio.TimeoutError
            If the coroutine execution times out. The coroutine is cancelled.
        """
        loop = self._ensure_loop_running(coro)
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        return await asyncio.wait_for(asyncio.wrap_future(future), timeout=timeout)

    def shutdown(self) -> None:
        """
        Stop the event loop and join its thread. Coroutines still pending on the loop
        are abandoned.
        """
        with self._lock:
            self._shutdown = True
            if self._loop is not None:
                self._loop.call_soon_threadsafe(self._loop.stop)
                if self._thread is not None:
                    self._thread.join(timeout=5)
                self._loop = None
                self._thread = None

    def _ensure_loop_running(self, coro: Coroutine[Any, Any, Any]) -> asyncio.AbstractEventLoop:
        """
        Ensure the runner's event loop is running in a dedicated thread.
        """
        def run_until_shutdown(loop: asyncio.AbstractEventLoop, started: threading.Event):
            asyncio.set_event_loop(loop)
            loop.call_soon(started.set)
            try:
                loop.run_forever()
            finally:
                loop.close()

        with self._lock:
            if self._shutdown:
                coro.close()
                raise RuntimeError(f"LoopRunner-[{self._name}] has been shut down")

            if self._loop is not None and self._loop.is_running():
                return self._loop

            started = threading.Event()
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=run_until_shutdown,
                args=(self._loop, started),
                name=self._name,
                daemon=True,
            )
            self._thread.start()
            started.wait()
            return self._loop
