"""
Veil Processing Worker

Runs every CPU-bound step of input handling (tag scanning, decoding, key
parsing, classification, encoding) away from the caller's thread. The
worker is reached only through messages:

    post_message({"id", "type", "payload"})  ->  inbox queue
    worker threads process requests independently
    on_response({"id", "success", "data" | "error"})

Exactly one response is produced per request. Failures raised by a task
handler, including malformed requests, are turned into failure responses
carrying the request id; they never stop the worker threads.

With more than one thread, responses may arrive in a different order than
the requests were posted. Callers must match them by id.

Decoded payloads are immutable ``bytes`` placed straight into the response;
the worker keeps no reference to them once the response is delivered.
"""

import base64
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from stego import InvalidPayloadError, StegoError, TagStego

from .analyzer import InputAnalyzer, decode_base64
from .messages import TaskType, WorkerRequest, WorkerResponse

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[Dict[str, Any]], None]


@dataclass
class WorkerConfig:
    """Configuration for the processing worker and its service."""
    max_concurrent_tasks: int
    poll_interval: float

    @classmethod
    def default(cls) -> 'WorkerConfig':
        """Get default configuration."""
        return cls(
            max_concurrent_tasks=2,
            poll_interval=0.5,
        )


def _require_mapping(payload: Any, field: str) -> Mapping:
    if not isinstance(payload, Mapping) or field not in payload:
        raise InvalidPayloadError(f"Invalid payload: missing '{field}'", code=2304)
    return payload


class ProcessingWorker:
    """
    Isolated processing context backed by a request queue and worker threads.

    Example:
        >>> responses = queue.Queue()
        >>> worker = ProcessingWorker(responses.put)
        >>> worker.start()
        >>> worker.post_message({"id": "1", "type": "analyze_input", "payload": {"input": text}})
        >>> responses.get()["data"]["kind"]
        'message'
        >>> worker.terminate()
    """

    def __init__(
        self,
        on_response: ResponseCallback,
        config: Optional[WorkerConfig] = None,
        stego: Optional[TagStego] = None,
    ):
        self._on_response = on_response
        self._config = config or WorkerConfig.default()
        self._stego = stego or TagStego()
        self._analyzer = InputAnalyzer(self._stego)

        self._inbox: queue.Queue = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._running = False
        self._lock = threading.Lock()

        self._handlers: Dict[TaskType, Callable[[Any], Any]] = {
            TaskType.DECODE_BINARY: self._handle_decode_binary,
            TaskType.ENCODE_BINARY: self._handle_encode_binary,
            TaskType.ANALYZE_INPUT: self._handle_analyze_input,
            TaskType.EMBED_STEALTH: self._handle_embed_stealth,
            TaskType.EXTRACT_STEALTH: self._handle_extract_stealth,
            TaskType.ENCRYPT: self._handle_passthrough,
            TaskType.DECRYPT: self._handle_passthrough,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the worker threads."""
        with self._lock:
            if self._running:
                return
            self._running = True
            for index in range(self._config.max_concurrent_tasks):
                thread = threading.Thread(
                    target=self._process_messages,
                    name=f"veil-worker-{index}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)

        logger.info(f"Processing worker started with {self._config.max_concurrent_tasks} threads")

    def terminate(self) -> None:
        """
        Stop the worker threads.

        Requests still queued are dropped without a response. Safe to call
        from a worker thread, e.g. inside a response callback; that thread
        exits once its current request is delivered.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            threads, self._threads = self._threads, []

        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join(timeout=self._config.poll_interval * 4)

        dropped = 0
        while True:
            try:
                self._inbox.get_nowait()
                dropped += 1
            except queue.Empty:
                break

        logger.info(f"Processing worker terminated ({dropped} queued requests dropped)")

    def post_message(self, message: Any) -> None:
        """Queue a raw request for processing."""
        self._inbox.put(message)

    def _process_messages(self) -> None:
        while self._running:
            try:
                message = self._inbox.get(timeout=self._config.poll_interval)
            except queue.Empty:
                continue

            response = self.process(message)
            try:
                self._on_response(response)
            except Exception as e:
                logger.error(f"Error delivering response {response.get('id')}: {e}")

    def process(self, message: Any) -> Dict[str, Any]:
        """
        Run one request synchronously and build its response message.

        Args:
            message: Raw request mapping

        Returns:
            Response message; never raises
        """
        request_id = message.get("id") if isinstance(message, Mapping) else None

        try:
            request = WorkerRequest.from_message(message)
            data = self._handlers[request.type](request.payload)
            return WorkerResponse(id=request_id, success=True, data=data).to_message()
        except Exception as e:
            error = e.message if isinstance(e, StegoError) else str(e)
            logger.debug(f"Task {request_id} failed: {error}")
            return WorkerResponse(id=request_id, success=False, error=error).to_message()

    # ------------------------------------------------------------------
    # Task handlers
    # ------------------------------------------------------------------

    def _handle_decode_binary(self, payload: Any) -> bytes:
        encoded = _require_mapping(payload, "base64")["base64"]
        if not isinstance(encoded, str):
            raise InvalidPayloadError("Invalid payload: 'base64' must be a string", code=2305)

        # data:<mime>;base64,<body>
        if "," in encoded:
            encoded = encoded.split(",", 1)[1]
        return decode_base64(encoded)

    def _handle_encode_binary(self, payload: Any) -> str:
        data = _require_mapping(payload, "data")["data"]
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidPayloadError("Invalid payload: expected bytes", code=2306)
        return base64.b64encode(bytes(data)).decode("ascii")

    def _handle_analyze_input(self, payload: Any) -> Dict[str, Any]:
        text = _require_mapping(payload, "input")["input"]
        if not isinstance(text, str):
            raise InvalidPayloadError("Invalid payload for analyze_input", code=2307)
        return self._analyzer.analyze(text).to_dict()

    def _handle_embed_stealth(self, payload: Any) -> str:
        request = _require_mapping(payload, "data")
        data = request["data"]
        cover = request.get("cover", "")
        if not isinstance(data, (bytes, bytearray, memoryview)) or not isinstance(cover, str):
            raise InvalidPayloadError("Invalid payload for embed_stealth", code=2308)
        return self._stego.embed(bytes(data), cover).text

    def _handle_extract_stealth(self, payload: Any) -> bytes:
        request = _require_mapping(payload, "text")
        text = request["text"]
        if not isinstance(text, str):
            raise InvalidPayloadError("Invalid payload for extract_stealth", code=2309)
        return self._stego.decode(text, lenient=bool(request.get("lenient", False)))

    @staticmethod
    def _handle_passthrough(payload: Any) -> Any:
        # Reserved for cryptographic offload
        return payload
