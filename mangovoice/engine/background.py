"""Best-effort background execution for fire-and-forget work.

Speech, analytics writes and self-healing remediation must never block or
fail the utterance that triggered them. Everything submitted here runs off
the caller's path; failures are logged and swallowed.
"""

import logging
from concurrent import futures as _futures
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _run_logged(description: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        logger.error(f"Background task '{description}' failed: {type(e).__name__}: {e}")
        return None


class BackgroundExecutor:
    """Thread pool with an unbounded queue. Submissions never block."""

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "mangovoice"):
        self._pool = _futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )

    def submit(self, fn: Callable[..., Any], *args: Any, description: Optional[str] = None, **kwargs: Any) -> _futures.Future:
        name = description or getattr(fn, "__name__", "task")
        return self._pool.submit(_run_logged, name, fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class InlineExecutor:
    """Runs submitted work immediately on the caller's thread.

    Same error policy as BackgroundExecutor. Used by tests and one-shot tools
    where deterministic ordering matters more than latency.
    """

    def submit(self, fn: Callable[..., Any], *args: Any, description: Optional[str] = None, **kwargs: Any) -> _futures.Future:
        name = description or getattr(fn, "__name__", "task")
        future: _futures.Future = _futures.Future()
        future.set_result(_run_logged(name, fn, *args, **kwargs))
        return future

    def shutdown(self, wait: bool = True) -> None:
        return None
