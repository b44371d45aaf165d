"""
Interactive session: refresh on a timer and on demand
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .models import CycleResult
from .pipeline import CancelToken, SnapshotPipeline
from .snapshot import export_snapshot

logger = logging.getLogger(__name__)


class LiveSession:
    """
    Runs pipeline cycles on a worker thread

    A cycle starts right away and then every `interval` seconds. trigger()
    abandons the cycle in flight and starts a fresh one immediately, so an
    older fetch can never overwrite the result of a newer one.
    """

    def __init__(self, pipeline: SnapshotPipeline, interval: Optional[float] = None):
        self.pipeline = pipeline
        self.interval = interval or pipeline.settings['schedule']['refresh_interval']
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._token_lock = threading.Lock()
        self._current: Optional[CancelToken] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def current_result(self) -> Optional[CycleResult]:
        return self.pipeline.last_result

    def run_once(self) -> CycleResult:
        """Run one cycle, cancelling whatever cycle is still in flight"""
        token = CancelToken()
        with self._token_lock:
            previous, self._current = self._current, token
            cycle_id = self.pipeline.next_cycle_id()
        if previous is not None:
            previous.cancel()
        try:
            return self.pipeline.run_cycle(cancel=token, cycle_id=cycle_id)
        finally:
            with self._token_lock:
                if self._current is token:
                    self._current = None

    def _loop(self) -> None:
        while not self._stop.is_set():
            self._wake.clear()
            try:
                self.run_once()
            except Exception:
                logger.exception("Refresh cycle crashed; waiting for the next one")
            self._wake.wait(self.interval)
        logger.info("Live session stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name='strikes-live', daemon=True)
        self._thread.start()
        logger.info(f"Live session started, refreshing every {self.interval} seconds")

    def trigger(self) -> None:
        """Manual refresh"""
        with self._token_lock:
            if self._current is not None:
                self._current.cancel()
        self._wake.set()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        self.trigger()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def export(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the strikes currently shown to a JSON file"""
        result = self.current_result
        if result is None:
            raise RuntimeError("No successful cycle to export yet")
        path = path or self.pipeline.settings['output']['export_file']
        return export_snapshot(result.strikes, path)
