"""
In-process periodic job runner.

Runs registered jobs on a daemon thread at a fixed interval. Used by the app
factory to expire stale pending bookings; tests drive ``run_pending()``
directly instead of starting the thread.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class IntervalScheduler:
    """Run a set of callables every ``interval_seconds`` on a background thread."""

    def __init__(self, interval_seconds: float, name: str = 'interval-scheduler'):
        if interval_seconds <= 0:
            raise ValueError('interval_seconds must be positive')
        self.interval_seconds = interval_seconds
        self.name = name
        self._jobs = []
        self._stop = threading.Event()
        self._thread = None

    def add_job(self, func, name: str = None):
        """Register a zero-argument callable."""
        self._jobs.append((name or func.__name__, func))
        return func

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_pending(self) -> dict:
        """
        Run every job once.

        A failing job is logged and does not stop the others.

        Returns:
            dict: {job_name: result or None if the job failed}
        """
        results = {}
        for name, func in self._jobs:
            try:
                results[name] = func()
            except Exception:
                logger.exception('Scheduled job %s failed', name)
                results[name] = None
        return results

    def start(self):
        """Start the background thread (no-op if already running)."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info('%s started (every %ss, %d jobs)', self.name, self.interval_seconds, len(self._jobs))

    def stop(self, timeout: float = None):
        """Signal the thread to stop and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self):
        while not self._stop.wait(self.interval_seconds):
            self.run_pending()
