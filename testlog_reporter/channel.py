"""Single-consumer event queue in front of the rendering engine."""

import logging
import queue
import threading
from typing import Optional

from .engine import ProgressEngine
from .models import SuiteAggregate, TestEvent

logger = logging.getLogger(__name__)

_STOP = object()


class EventChannel:
    """Thread-safe intake for test events.

    Producer threads only enqueue. One consumer thread, running between
    ``run_started()`` and ``run_finished()``, hands events to the engine in
    the order they were enqueued.
    """

    def __init__(self, engine: ProgressEngine):
        self.engine = engine
        self._queue: queue.Queue = queue.Queue()
        self._consumer: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._consumer is not None

    def record_test_result(self, event: TestEvent) -> None:
        self._queue.put(("test", event))

    def record_suite_aggregate(self, aggregate: SuiteAggregate) -> None:
        self._queue.put(("suite", aggregate))

    def run_started(self) -> None:
        with self._lock:
            if self._consumer is not None:
                return
            self.engine.run_started()
            self._consumer = threading.Thread(
                target=self._consume,
                name=f"testlog-{self.engine.task_name}",
                daemon=True,
            )
            self._consumer.start()

    def drain(self) -> None:
        """Block until every event enqueued so far has been rendered."""
        if self._consumer is None:
            raise RuntimeError("Event channel is not running; call run_started() first")
        self._queue.join()

    def run_finished(self) -> None:
        with self._lock:
            consumer = self._consumer
            if consumer is None:
                return
            self._queue.put(_STOP)
            consumer.join()
            self._consumer = None
        self.engine.run_finished()

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                kind, payload = item
                if kind == "test":
                    self.engine.record_test_result(payload)
                else:
                    self.engine.record_suite_aggregate(payload)
            except Exception as e:
                logger.error(f"Failed to render {item[0]} event: {e}")
            finally:
                self._queue.task_done()
