"""
Worker message envelopes.

Requests and responses cross the worker boundary as plain dictionaries, the
shape a message-passing transport can carry:

    request:  {"id": str, "type": str, "payload": Any}
    response: {"id": str, "success": bool, "data"?: Any, "error"?: str}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from stego import InvalidPayloadError


class TaskType(Enum):
    """Tasks understood by the processing worker."""

    DECODE_BINARY = "decode_binary"
    ENCODE_BINARY = "encode_binary"
    ANALYZE_INPUT = "analyze_input"
    EMBED_STEALTH = "embed_stealth"
    EXTRACT_STEALTH = "extract_stealth"
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class TaskPriority(Enum):
    HIGH = "high"
    NORMAL = "normal"


@dataclass(frozen=True)
class WorkerRequest:
    id: str
    type: TaskType
    payload: Any

    def to_message(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type.value, "payload": self.payload}

    @classmethod
    def from_message(cls, message: Any) -> 'WorkerRequest':
        """
        Validate a raw request message.

        Raises:
            InvalidPayloadError: If a field is missing or the task is unknown
        """
        if not isinstance(message, Mapping):
            raise InvalidPayloadError("Request must be a mapping", code=2301)
        if "payload" not in message:
            raise InvalidPayloadError("Invalid payload: request has no payload", code=2302)

        try:
            task_type = TaskType(message.get("type"))
        except ValueError:
            raise InvalidPayloadError(
                f"Unknown task type: {message.get('type')}",
                code=2303,
                details={"type": message.get("type")},
            ) from None

        return cls(id=message.get("id"), type=task_type, payload=message["payload"])


@dataclass(frozen=True)
class WorkerResponse:
    id: Optional[str]
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        if self.success:
            return {"id": self.id, "success": True, "data": self.data}
        return {"id": self.id, "success": False, "error": self.error}

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> 'WorkerResponse':
        return cls(
            id=message.get("id"),
            success=bool(message.get("success")),
            data=message.get("data"),
            error=message.get("error"),
        )
