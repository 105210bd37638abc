# plvr/errors.py
#
# Error taxonomy shared by every pipeline component.
#
# Design decisions:
#   - Components raise PipelineError; the crawler's task boundary converts it
#     into an ErrorData value on the errors channel. Nothing else consumes
#     exceptions, so every externally observable failure is exactly one
#     ErrorData with a stable code.
#   - Codes keep the values published by earlier releases of the tool so log
#     scrapers that match on "PV00001" etc. keep working.
#
# Invariants:
#   - ErrorData is immutable; details is always a tuple (possibly empty).
#   - target is a dotted "module.operation" locator.
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes."""

    INTERNAL = "PV00000"  # unexpected exception inside a season task
    HTTP_STATUS = "PV00001"
    CREATE_ZIP_FILE = "PV00002"
    COPY_ZIP_CONTENT_TO_FILE = "PV00003"
    OPEN_ZIPPED_FILE = "PV00004"
    READ_ZIPPED_FILE = "PV00005"
    CHECK_RECORD_EXISTS = "PV00006"
    HTTP_REQUEST = "PV00007"
    READ_ZIP_FILE_FROM_LOCAL = "PV00008"
    CREATE_ZIP_READER = "PV00009"
    UNMARSHAL_CSV = "PV00010"
    DB_INSERTION = "PS00001"
    ROC_ERA_FORMATTING = "PS00002"


@dataclass(frozen=True)
class ErrorData:
    """Structured failure record reported on the errors channel."""

    code: ErrorCode
    message: str
    target: str
    details: tuple[ErrorData, ...] = field(default_factory=tuple)
    inner: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "target": self.target,
        }
        if self.details:
            payload["details"] = [d.to_dict() for d in self.details]
        if self.inner is not None:
            payload["innererror"] = self.inner
        return payload

    def __str__(self) -> str:
        text = f"Error{{code={self.code.value}, message={self.message}, target={self.target}"
        if self.details:
            text += f", details={len(self.details)}"
        if self.inner is not None:
            text += f", innererror={self.inner}"
        return text + "}"


class PipelineError(Exception):
    """Exception carrying a single ErrorData."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        target: str,
        *,
        details: tuple[ErrorData, ...] = (),
        inner: Any = None,
    ) -> None:
        super().__init__(message)
        self.data = ErrorData(code=code, message=message, target=target, details=details, inner=inner)

    @property
    def code(self) -> ErrorCode:
        return self.data.code


class FormatError(PipelineError):
    """Raised by the era date codec on malformed input."""

    def __init__(self, message: str, target: str) -> None:
        super().__init__(ErrorCode.ROC_ERA_FORMATTING, message, target)
