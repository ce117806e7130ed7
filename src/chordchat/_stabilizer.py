"""_stabilizer.py: periodic ring repair."""
import threading
from typing import Callable, Optional

from loguru import logger


class _Stabilizer:
    """Runs the node's repair steps on a daemon thread.

    Each tick calls every step in order. A step that raises is logged and
    the remaining steps still run; the next tick happens regardless.

    Args:
        steps: Callables run once per tick (stabilize, fix_fingers).
        interval: Seconds between ticks.
    """

    def __init__(self, *steps: Callable[[], None],
                 interval: float = 1.0) -> None:
        self._steps = steps
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def tick(self) -> None:
        """Runs every step once."""
        for step in self._steps:
            try:
                step()
            except Exception:
                name = getattr(step, "__name__", repr(step))
                logger.exception(f"Stabilizer step {name} failed")

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self.tick()
