"""
Request coalescing for identical in-flight fetches.

Two requests that miss the cache on the same key at the same moment share
one upstream call instead of spending provider quota twice.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("cache.coalescer")


@dataclass
class InFlightRequest:
    """An upstream fetch that other callers may join."""
    done: threading.Event = field(default_factory=threading.Event)
    result: Optional[Any] = None
    error: Optional[BaseException] = None
    started_at: float = field(default_factory=time.monotonic)
    waiters: int = 0


class RequestCoalescer:
    """
    Runs at most one fetch per key at a time.

    The first caller for a key runs `fetch_fn`; callers arriving while it
    runs block on its Event and receive the same result or exception.
    """

    def __init__(self, timeout: float = 30.0):
        self._in_flight: Dict[str, InFlightRequest] = {}
        self._lock = threading.Lock()
        self._timeout = timeout
        self._coalesced_total = 0

    def run(self, key: str, fetch_fn: Callable[[], Any]) -> Any:
        """
        Run `fetch_fn` for `key`, or wait for the run already in progress.

        Raises:
            TimeoutError: the in-flight run did not finish within the timeout
            Exception: whatever `fetch_fn` raised
        """
        with self._lock:
            request = self._in_flight.get(key)
            leader = request is None
            if leader:
                request = InFlightRequest()
                self._in_flight[key] = request
            else:
                request.waiters += 1
                self._coalesced_total += 1
                logger.debug(f"Joining in-flight fetch for {key} (waiters: {request.waiters})")

        if leader:
            try:
                request.result = fetch_fn()
            except Exception as e:
                request.error = e
            finally:
                with self._lock:
                    self._in_flight.pop(key, None)
                request.done.set()
            if request.error is not None:
                raise request.error
            return request.result

        if not request.done.wait(timeout=self._timeout):
            logger.error(f"Timed out waiting for in-flight fetch: {key}")
            raise TimeoutError(f"Fetch for {key} did not finish within {self._timeout}s")
        if request.error is not None:
            raise request.error
        return request.result

    @property
    def active_requests(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "active_requests": len(self._in_flight),
                "coalesced_total": self._coalesced_total,
            }
