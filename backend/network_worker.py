"""
Network Worker - runs blocking EventSource calls in background threads.

Uses ThreadPoolExecutor to keep the UI responsive while the calendar API or
an ICS feed is contacted. Completions are delivered through Qt signals and
routed back to the callbacks registered in dispatch() on the main thread.
"""

from concurrent.futures import ThreadPoolExecutor, Future
from datetime import datetime
from typing import Callable, Any, Optional
import traceback
import sys

from PySide6.QtCore import QObject, Signal, Slot


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] NETWORK: {msg}", file=sys.stderr)


class NetworkWorker(QObject):
    """
    Runs network operations in background threads.

    Signals are queued onto the thread that owns the worker (the GUI thread),
    so callbacks passed to dispatch() run there.
    """

    # Args: (operation_id: str, result: object)
    operation_finished = Signal(str, object)

    # Args: (operation_id: str, error: Exception)
    operation_error = Signal(str, object)

    def __init__(self, max_workers: int = 3, parent=None):
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="network")
        self._pending: dict[str, Future] = {}
        self._callbacks: dict[str, tuple[Callable[[Any], None], Callable[[Exception], None]]] = {}

        self.operation_finished.connect(self._deliver_result)
        self.operation_error.connect(self._deliver_error)

    def submit(self, operation_id: str, func: Callable, *args, **kwargs) -> None:
        """
        Submit a blocking operation to run in a background thread.

        Args:
            operation_id: Unique identifier for this operation (for callback matching)
            func: The blocking function to run
            *args, **kwargs: Arguments to pass to func

        The operation_finished or operation_error signal will be emitted when complete.
        """
        future = self._executor.submit(func, *args, **kwargs)
        self._pending[operation_id] = future
        future.add_done_callback(lambda f: self._on_done(operation_id, f))

    def dispatch(self, operation_id: str, func: Callable[[], Any],
                 on_success: Callable[[Any], None],
                 on_error: Callable[[Exception], None]) -> None:
        """Run func in the background and call on_success or on_error on the GUI thread."""
        self._callbacks[operation_id] = (on_success, on_error)
        self.submit(operation_id, func)

    def _on_done(self, operation_id: str, future: Future) -> None:
        """Handle completion of a background operation (runs in the pool thread)."""
        self._pending.pop(operation_id, None)

        try:
            result = future.result()
        except Exception as e:
            _debug_print(f"Operation '{operation_id}' failed: {type(e).__name__}: {e}")
            traceback.print_exc(file=sys.stderr)
            self.operation_error.emit(operation_id, e)
            return
        self.operation_finished.emit(operation_id, result)

    @Slot(str, object)
    def _deliver_result(self, operation_id: str, result: object) -> None:
        callbacks = self._callbacks.pop(operation_id, None)
        if callbacks is not None:
            callbacks[0](result)

    @Slot(str, object)
    def _deliver_error(self, operation_id: str, error: object) -> None:
        callbacks = self._callbacks.pop(operation_id, None)
        if callbacks is not None:
            callbacks[1](error)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor; queued operations that have not started are dropped."""
        self._callbacks.clear()
        self._executor.shutdown(wait=wait, cancel_futures=True)


# Global worker instance (created lazily)
_global_worker: Optional[NetworkWorker] = None


def get_network_worker() -> NetworkWorker:
    """Get the global NetworkWorker instance."""
    global _global_worker
    if _global_worker is None:
        _global_worker = NetworkWorker()
    return _global_worker


def shutdown_network_worker() -> None:
    """Shutdown the global NetworkWorker."""
    global _global_worker
    if _global_worker is not None:
        _global_worker.shutdown(wait=False)
        _global_worker = None
