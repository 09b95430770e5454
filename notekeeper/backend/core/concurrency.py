"""
Concurrency Infrastructure.

Thread pool management for blocking file I/O.
The pool is created lazily on first access and cleaned up during shutdown.

Pools:
    _io_pool    - TracedThreadPoolExecutor for blocking I/O (asyncio.to_thread replacement)

Sizing is configured in config/settings/concurrency.yaml.

Usage:
    from notekeeper.backend.core.concurrency import run_blocking

    # Run blocking code in thread pool (preserves structlog context)
    notes = await run_blocking(store.load)
"""

import asyncio
import contextvars
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_io_pool: ThreadPoolExecutor | None = None


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Standard ThreadPoolExecutor does not carry structlog context or the
    request_id into worker threads. This subclass copies the current
    context before dispatching, so all log fields are preserved.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking I/O operations.

    Creates the pool lazily on first call using config from concurrency.yaml.
    """
    global _io_pool
    if _io_pool is None:
        from notekeeper.backend.core.config import get_app_config
        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers)
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


async def run_blocking(fn: Callable[..., T], *args: Any) -> T:
    """Run a blocking callable in the I/O pool and wait for its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_io_pool(), fn, *args)


async def shutdown_pools() -> None:
    """Shut down the I/O pool gracefully. Called during application shutdown.

    Pool shutdown is blocking, so we run it in a thread to avoid stalling
    the event loop during graceful shutdown. In-flight writes get up to
    shutdown.drain_seconds to finish.
    """
    global _io_pool

    if _io_pool is not None:
        from notekeeper.backend.core.config import get_app_config
        drain_seconds = get_app_config().concurrency.shutdown.drain_seconds
        pool, _io_pool = _io_pool, None
        try:
            await asyncio.wait_for(
                asyncio.to_thread(pool.shutdown, wait=True),
                timeout=drain_seconds,
            )
            logger.info("Thread pool shut down")
        except asyncio.TimeoutError:
            logger.warning(
                "Thread pool did not drain in time",
                extra={"drain_seconds": drain_seconds},
            )
