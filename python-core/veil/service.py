"""
Veil Worker Service

Caller-side half of the execution boundary. Every call to ``execute`` gets a
fresh correlation id and a future; the future is resolved when the worker's
response with the same id arrives, in whatever order responses come back.

Scheduling:
    - at most ``max_concurrent_tasks`` requests are in flight
    - the rest wait in a pending queue; HIGH priority requests are placed
      ahead of NORMAL ones, first-in first-out within a priority
    - requests cannot be cancelled and are not timed out here; use
      ``future.result(timeout=...)`` for a deadline

Example:
    >>> with WorkerService() as service:
    ...     future = service.execute(TaskType.ANALYZE_INPUT, {"input": pasted})
    ...     analysis = future.result(timeout=5)
"""

import asyncio
import logging
import threading
import uuid
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Union

from stego import StegoError

from .messages import TaskPriority, TaskType, WorkerResponse
from .worker import ProcessingWorker, WorkerConfig

logger = logging.getLogger(__name__)


class WorkerTaskError(StegoError):
    """A task finished with a failure response."""


class WorkerTerminatedError(StegoError):
    """The worker was torn down before the task completed."""


@dataclass
class _PendingTask:
    id: str
    type: str
    payload: Any
    priority: TaskPriority
    future: Future

    def to_message(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "payload": self.payload}


class WorkerService:
    """
    Schedules tasks on a ProcessingWorker and demultiplexes its responses.

    Thread Safety:
        All public methods may be called from any thread, including from
        future callbacks.
    """

    def __init__(self, config: Optional[WorkerConfig] = None):
        self._config = config or WorkerConfig.default()
        self._lock = threading.Lock()
        self._pending: Deque[_PendingTask] = deque()
        self._in_flight: Dict[str, Future] = {}
        self._closed = False
        self._worker = self._create_worker()

    def _create_worker(self) -> ProcessingWorker:
        worker = ProcessingWorker(self._handle_response, self._config)
        worker.start()
        return worker

    def __enter__(self) -> 'WorkerService':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def execute(
        self,
        task_type: Union[TaskType, str],
        payload: Any,
        priority: TaskPriority = TaskPriority.NORMAL,
    ) -> Future:
        """
        Schedule a task on the worker.

        Args:
            task_type: Task to run; unknown names fail through the worker
            payload: Task-specific payload
            priority: Placement in the pending queue

        Returns:
            Future resolved with the task's data, or failed with
            WorkerTaskError / WorkerTerminatedError
        """
        future: Future = Future()
        # Running futures cannot be cancelled
        future.set_running_or_notify_cancel()

        type_name = task_type.value if isinstance(task_type, TaskType) else task_type
        task = _PendingTask(
            id=str(uuid.uuid4()),
            type=type_name,
            payload=payload,
            priority=priority,
            future=future,
        )

        with self._lock:
            if self._closed:
                raise RuntimeError("WorkerService is closed")
            self._enqueue(task)

        self._process_queue()
        return future

    async def execute_async(
        self,
        task_type: Union[TaskType, str],
        payload: Any,
        priority: TaskPriority = TaskPriority.NORMAL,
    ) -> Any:
        """Await a task from asyncio code."""
        return await asyncio.wrap_future(self.execute(task_type, payload, priority))

    def _enqueue(self, task: _PendingTask) -> None:
        if task.priority is not TaskPriority.HIGH:
            self._pending.append(task)
            return

        insert_at = 0
        for index, queued in enumerate(self._pending):
            if queued.priority is TaskPriority.HIGH:
                insert_at = index + 1
        self._pending.insert(insert_at, task)

    def _process_queue(self) -> None:
        to_send: List[_PendingTask] = []
        with self._lock:
            while self._pending and len(self._in_flight) < self._config.max_concurrent_tasks:
                task = self._pending.popleft()
                self._in_flight[task.id] = task.future
                to_send.append(task)
            worker = self._worker

        for task in to_send:
            worker.post_message(task.to_message())

    def _handle_response(self, message: Dict[str, Any]) -> None:
        response = WorkerResponse.from_message(message)

        with self._lock:
            future = self._in_flight.pop(response.id, None)

        if future is None:
            logger.debug(f"Ignoring response for unknown task {response.id}")
            return

        if response.success:
            future.set_result(response.data)
        else:
            future.set_exception(WorkerTaskError(response.error or "Task failed", code=2310))

        self._process_queue()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _take_outstanding(self) -> List[Future]:
        # Caller holds the lock
        outstanding = list(self._in_flight.values()) + [task.future for task in self._pending]
        self._in_flight.clear()
        self._pending.clear()
        return outstanding

    @staticmethod
    def _fail(futures: List[Future], reason: str) -> None:
        for future in futures:
            future.set_exception(WorkerTerminatedError(reason, code=2311))

    def restart(self) -> None:
        """
        Tear down the worker and start a fresh one.

        Every in-flight and pending task fails with WorkerTerminatedError.

        Raises:
            RuntimeError: If the service is closed
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("WorkerService is closed")

        logger.warning("Restarting processing worker...")
        new_worker = self._create_worker()

        with self._lock:
            if self._closed:
                new_worker.terminate()
                raise RuntimeError("WorkerService is closed")
            old_worker, self._worker = self._worker, new_worker
            outstanding = self._take_outstanding()

        self._fail(outstanding, "Worker terminated via restart")
        old_worker.terminate()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop the worker; outstanding tasks fail with WorkerTerminatedError."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
            outstanding = self._take_outstanding()

        self._fail(outstanding, "Worker service closed")
        worker.terminate()


_service: Optional[WorkerService] = None
_service_lock = threading.Lock()


def get_worker_service() -> WorkerService:
    """Get the process-wide WorkerService, creating it on first use."""
    global _service
    with _service_lock:
        if _service is None or _service.closed:
            _service = WorkerService()
        return _service
