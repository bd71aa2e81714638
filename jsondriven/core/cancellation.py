import threading
from typing import Callable, List

from jsondriven.exceptions import OperationCancelled


class CancellationToken:
    """
    Cooperative cancellation signal shared between a test driver and the
    operation it is running.

    The driver calls ``cancel()`` from any thread. The interpreter checks the
    token at the call boundary and forwards it to in-flight async calls; it
    never times anything out on its own.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @classmethod
    def none(cls) -> "CancellationToken":
        """A fresh token that nobody holds, so it is never cancelled."""
        return cls()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Runs ``callback`` once when the token is cancelled (immediately if it
        already is). Returns a function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled before the call started.")

    def _unregister(self, callback):
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
