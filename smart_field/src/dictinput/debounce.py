from __future__ import annotations
import threading
from typing import Any, Callable, Optional


class Debouncer:
    """
    Cancellable timer that coalesces bursts of calls: only the arguments of the last
    call made within `wait` seconds are delivered, once the burst goes quiet.
    """

    def __init__(self, wait: float, fn: Callable[..., Any]) -> None:
        self.wait = float(wait)
        self.fn = fn
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: tuple = ()
        self._gen = 0
        self._closed = False

    def __call__(self, *args: Any) -> None:
        with self._lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._args = args
            self._gen += 1
            self._timer = threading.Timer(self.wait, self._fire, args=(self._gen,))
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _take(self, gen: Optional[int] = None) -> Optional[tuple]:
        with self._lock:
            if self._timer is None:
                return None
            if gen is not None and gen != self._gen:
                return None  # superseded by a later call
            self._timer.cancel()
            self._timer = None
            args, self._args = self._args, ()
            return args

    def _fire(self, gen: int) -> None:
        args = self._take(gen)
        if args is not None:
            self.fn(*args)

    def flush(self) -> bool:
        """Deliver the pending call now (if any). Returns whether something ran."""
        args = self._take()
        if args is None:
            return False
        self.fn(*args)
        return True

    def cancel(self) -> None:
        self._take()

    def close(self) -> None:
        """Cancel and refuse further calls; idempotent."""
        self.cancel()
        with self._lock:
            self._closed = True
